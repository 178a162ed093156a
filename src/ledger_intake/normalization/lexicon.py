"""
Keyword lexicons and text heuristics (SSOT).

Every keyword list used to infer direction, channel, category, references
and counterparty names lives here, so the extractor fallback and the
normalizer agree on what a phrase means.
"""

import re

from ..schemas.records import Direction, PaymentChannel

# ============================================================================
# Direction hints
# ============================================================================

# Phrases in a description that mark money coming in
INBOUND_HINTS = ["received from", "customer payment", "deposit", "cash sale", "payment from"]

# Phrases in a description that mark money going out
OUTBOUND_HINTS = [
    "paid to",
    "withdraw",
    "withdrawal",
    "airtime",
    "send money",
    "supplier",
    "rent",
    "utility",
    "stock purchase",
    "inventory",
    "restock",
]

# Looser single-word lexicon for free text lines (outbound checked first)
OUTBOUND_KEYWORDS = [
    "paid",
    "expense",
    "cost",
    "rent",
    "withdraw",
    "withdrawal",
    "debit",
    "send",
    "sent",
    "purchase",
    "transport",
    "airtime",
    "out",
]
INBOUND_KEYWORDS = ["sale", "sales", "sold", "received", "income", "credit", "payment", "in"]

# Words that indicate a line is about money at all
MONEY_KEYWORDS = [
    "kes",
    "ksh",
    "mpesa",
    "m-pesa",
    "paybill",
    "pochi",
    "till",
    "paid",
    "received",
    "sale",
    "sold",
    "expense",
    "credit",
    "debit",
    "fee",
    "charge",
    "amount",
    "total",
]

CURRENCY_MARKER_RE = re.compile(r"\b(?:kes|ksh|kshs)\b|/=", re.IGNORECASE)

# ============================================================================
# References
# ============================================================================

# 8-12 uppercase alphanumerics containing at least one letter and one digit
REFERENCE_CODE_RE = re.compile(r"\b(?=[A-Z0-9]*\d)(?=[A-Z0-9]*[A-Z])[A-Z0-9]{8,12}\b")

# Values that mean "no reference"
REFERENCE_PLACEHOLDERS = {"n/a", "na", "-", "--", "none", "null", "nil"}

# ============================================================================
# Channels and categories
# ============================================================================

# Ordered: first matching group wins
CHANNEL_KEYWORDS: list[tuple[PaymentChannel, list[str]]] = [
    (
        PaymentChannel.MOBILE_TRANSFER,
        ["pochi", "paybill", "till", "buy goods", "mpesa", "m-pesa", "wallet", "mobile"],
    ),
    (PaymentChannel.BANK, ["bank", "card", "cheque"]),
    (PaymentChannel.CASH, ["cash"]),
]

CATEGORY_KEYWORDS: list[tuple[str, list[str]]] = [
    ("Stock Purchase", ["stock", "inventory", "restock", "supplier", "wholesale"]),
    ("Rent", ["rent"]),
    ("Utilities", ["token", "power", "electric", "electricity", "water", "utility"]),
    ("Transport", ["transport", "fuel", "fare"]),
    ("Sales", ["sale", "sold", "customer", "receipt", "m-pesa", "till", "paybill", "pochi"]),
]

# Narrower lexicon used when a row has a description but no category column
ROW_CATEGORY_KEYWORDS: list[tuple[str, list[str]]] = [
    ("Stock Purchase", ["stock", "inventory", "restock"]),
    ("Rent", ["rent"]),
    ("Utilities", ["utility", "electric", "electricity", "water bill"]),
]

# ============================================================================
# Counterparty name inference
# ============================================================================

CLIENT_PREFIXES = ["received from ", "payment from ", "customer ", "client "]
SUPPLIER_PREFIXES = ["paid to ", "supplier ", "vendor ", "merchant "]
PRODUCT_PREFIXES = ["product ", "item ", "goods "]

CLIENT_CONTEXT_KEYWORDS = ["received from", "customer", "client", "payment from"]
CLIENT_DESCRIPTION_KEYWORDS = ["customer", "client", "buyer", "received", "payment"]
SUPPLIER_CONTEXT_KEYWORDS = ["supplier", "vendor", "wholesale", "restock", "stock", "paid to"]

# A name ends at punctuation, a preposition, a currency marker or a number
_NAME_TERMINATOR_RE = re.compile(
    r"[,.;:]| on | at |\s(?:kes|ksh|kshs)\b|\s[-+]?\d", re.IGNORECASE
)
_NAME_ALLOWED_RE = re.compile(r"[^\w\s.&'-]")
_REJECTED_NAMES = {"kes", "ksh", "cash", "bank", "mobile", "transfer", "unknown", "n/a"}
MAX_NAME_LENGTH = 80

# ============================================================================
# OCR clean-up
# ============================================================================

# Common abbreviations on receipts and statements, expanded after OCR
OCR_ABBREVIATIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bamnt\b|\bamt\b", re.IGNORECASE), "amount"),
    (re.compile(r"\bpd to\b", re.IGNORECASE), "paid to"),
    (re.compile(r"\bpd\b", re.IGNORECASE), "paid"),
    (re.compile(r"\brcvd\b|\brcv\b", re.IGNORECASE), "received"),
    (re.compile(r"\bbal\b", re.IGNORECASE), "balance"),
    (re.compile(r"\bcr\b", re.IGNORECASE), "credit"),
    (re.compile(r"\bdr\b", re.IGNORECASE), "debit"),
    (re.compile(r"\bdep\b", re.IGNORECASE), "deposit"),
    (re.compile(r"\bm\s?pesa\b", re.IGNORECASE), "m-pesa"),
    (re.compile(r"\btill no\b", re.IGNORECASE), "till"),
    (re.compile(r"\bpb\b", re.IGNORECASE), "paybill"),
]


def contains_any(text: str, keywords: list[str]) -> bool:
    """Case-insensitive substring test against a keyword list."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def _contains_word(text: str, keywords: list[str]) -> bool:
    lowered = text.lower()
    return any(re.search(rf"(?<![\w-]){re.escape(word)}(?![\w-])", lowered) for word in keywords)


def direction_hint(text: str) -> Direction | None:
    """Infer direction from description phrases (outbound checked first)."""
    if not text:
        return None
    if _contains_word(text, OUTBOUND_HINTS):
        return Direction.OUT
    if _contains_word(text, INBOUND_HINTS):
        return Direction.IN
    return None


def guess_direction(text: str) -> Direction:
    """
    Guess direction for a free text line.

    Whole-word matching over the loose lexicon; outbound wins ties and
    inbound is the default.
    """
    if _contains_word(text, OUTBOUND_KEYWORDS):
        return Direction.OUT
    return Direction.IN


def has_money_keyword(text: str) -> bool:
    """Check whether a line mentions money, a currency or a channel."""
    return _contains_word(text, MONEY_KEYWORDS) or bool(CURRENCY_MARKER_RE.search(text))


def infer_channel(text: str) -> PaymentChannel:
    """Map free text onto a payment channel; UNKNOWN if nothing matches."""
    if not text:
        return PaymentChannel.UNKNOWN
    for channel, keywords in CHANNEL_KEYWORDS:
        if contains_any(text, keywords):
            return channel
    return PaymentChannel.UNKNOWN


def infer_category(text: str, fallback: str = "") -> str:
    """Broad category lexicon for free text."""
    for category, keywords in CATEGORY_KEYWORDS:
        if contains_any(text, keywords):
            return category
    return fallback


def infer_row_category(text: str) -> str:
    """Narrow category lexicon for descriptions in structured rows."""
    for category, keywords in ROW_CATEGORY_KEYWORDS:
        if contains_any(text, keywords):
            return category
    return ""


def find_reference(text: str) -> str:
    """Return the first reference code in the text, or ""."""
    match = REFERENCE_CODE_RE.search(text or "")
    return match.group(0) if match else ""


def clean_reference(value: str) -> str:
    """Treat placeholders such as N/A as an absent reference."""
    value = (value or "").strip()
    if value.lower() in REFERENCE_PLACEHOLDERS:
        return ""
    return value


def sanitize_name(value: str) -> str:
    """
    Clean a person or business name.

    Keeps word characters, spaces and .&'-, collapses whitespace, caps the
    length, rejects lone currency or channel words and bare numbers.
    """
    cleaned = _NAME_ALLOWED_RE.sub("", value or "")
    cleaned = re.sub(r"\s+", " ", cleaned).strip(" .-")
    if not cleaned or cleaned.lower() in _REJECTED_NAMES:
        return ""
    # A name needs at least one letter
    if not re.search(r"[^\W\d_]", cleaned):
        return ""
    return cleaned[:MAX_NAME_LENGTH].strip()


def extract_named_entity(text: str, prefixes: list[str]) -> str:
    """
    Find a name following one of the prefixes.

    Examples:
        >>> extract_named_entity("Paid to Acme Ltd KES 2,300", SUPPLIER_PREFIXES)
        'Acme Ltd'
    """
    lowered = (text or "").lower()
    for prefix in prefixes:
        index = lowered.find(prefix)
        if index < 0:
            continue
        tail = text[index + len(prefix):]
        phrase = _NAME_TERMINATOR_RE.split(tail, maxsplit=1)[0]
        name = sanitize_name(phrase)
        if len(name) >= 3:
            return name
    return ""


def normalize_phone(value: str) -> str:
    """Keep digits and a leading +; valid numbers have 9-15 digits."""
    compact = re.sub(r"[^\d+]", "", value or "")
    if re.fullmatch(r"\+?\d{9,15}", compact):
        return compact
    return ""


def expand_abbreviations(text: str) -> str:
    """Expand receipt abbreviations (amt -> amount, rcvd -> received, ...)."""
    for pattern, replacement in OCR_ABBREVIATIONS:
        text = pattern.sub(replacement, text)
    return text
