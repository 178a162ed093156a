"""
Text to row-matrix conversion.

Three layers, from strict to forgiving:
1. parse_delimited: RFC4180 state machine (quotes, embedded delimiters and
   newlines, doubled quotes)
2. matrix_from_extracted_text: PDF/OCR text split on commas, tabs, pipes
   or runs of spaces
3. matrix_from_loose_text: one synthetic row per line that looks like a
   money movement (used when the structure is too weak to trust)
"""

import logging
import re
from decimal import Decimal

from ..normalization.lexicon import (
    CURRENCY_MARKER_RE,
    REFERENCE_CODE_RE,
    contains_any,
    find_reference,
    guess_direction,
    has_money_keyword,
    infer_category,
    infer_channel,
)
from ..normalization.values import parse_signed_amount, to_iso_date
from ..schemas.records import Direction, PaymentChannel

logger = logging.getLogger(__name__)

# Synthetic header for rows recovered from loose text
LOOSE_HEADERS = [
    "date",
    "cash_in",
    "cash_out",
    "description",
    "orders",
    "category",
    "transaction_cost",
    "reference_code",
    "payment_mode",
    "payment_channel",
]

# Loose-text thresholds
MAX_PLAUSIBLE_AMOUNT = Decimal("10000000")
MIN_MARKED_AMOUNT = Decimal("20")  # smaller amounts need a currency marker
MIN_PRINTABLE_RATIO = 0.8

# Low-structure detection
STRUCTURE_SAMPLE_ROWS = 11
MIN_STRUCTURED_CELLS = 3
MAX_STRUCTURED_RATIO = 0.3

# PDF boilerplate that leaks into text when a PDF is read as text
PDF_NOISE_TOKENS = [
    "%pdf",
    "endobj",
    "endstream",
    "startxref",
    "xref",
    "trailer",
    "/font",
    "/length",
    "/type",
    "/root",
    "/filter",
    "flatedecode",
    "fontbbox",
    "italicangle",
    "capheight",
]
PDF_NOISE_PATTERNS = [
    re.compile(r"^%pdf-\d\.\d", re.IGNORECASE),
    re.compile(r"^\d+\s+\d+\s+obj\b", re.IGNORECASE),
    re.compile(r"^\d{6,}\s+\d{4,}\s+[nf]$", re.IGNORECASE),
    re.compile(r"^(?:obj|stream)$", re.IGNORECASE),
    re.compile(r"<<.*>>"),
]

# Amount tokens: 2,300 / 2300 / 2300.50, not glued to letters or digits
AMOUNT_TOKEN_RE = re.compile(
    r"(?<![A-Za-z0-9.,])[-+]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?(?![A-Za-z0-9])"
)
# Date and time tokens are removed before looking for amounts
DATE_TOKEN_RE = re.compile(
    r"\b\d{4}-\d{1,2}-\d{1,2}\b|\b\d{1,2}[/.]\d{1,2}[/.]\d{2,4}\b|\b\d{1,2}:\d{2}(?::\d{2})?\s*(?:am|pm)?\b",
    re.IGNORECASE,
)
LONG_NUMBER_RE = re.compile(r"\b\d{7,}\b")
CURRENCY_GLUE_RE = re.compile(r"\b(kes|ksh|kshs)(?=\d)", re.IGNORECASE)
FEE_KEYWORDS = ["fee", "charge", "cost"]


# ============================================================================
# RFC4180 delimited parsing
# ============================================================================


def parse_delimited(text: str, delimiter: str = ",") -> list[list[str]]:
    """
    Parse delimited text with a small state machine.

    Handles quoted fields containing the delimiter, CR/LF newlines, and
    doubled quotes. Cells are trimmed; rows whose cells are all blank are
    dropped.
    """
    rows: list[list[str]] = []
    row: list[str] = []
    cell: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if in_quotes:
            if char == '"':
                if i + 1 < length and text[i + 1] == '"':
                    cell.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                cell.append(char)
        elif char == '"':
            in_quotes = True
        elif char == delimiter:
            row.append("".join(cell))
            cell = []
        elif char in "\r\n":
            if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            row.append("".join(cell))
            _append_row(rows, row)
            row, cell = [], []
        else:
            cell.append(char)
        i += 1

    if cell or row:
        row.append("".join(cell))
        _append_row(rows, row)

    return rows


def _append_row(rows: list[list[str]], row: list[str]) -> None:
    cells = [value.strip() for value in row]
    if any(cells):
        rows.append(cells)


def detect_delimiter(text: str, filename: str = "") -> str:
    """Tab for .tsv, or when the first line has tabs and no commas; else comma."""
    if filename.lower().endswith(".tsv"):
        return "\t"
    first_line = text.lstrip("\ufeff").split("\n", 1)[0]
    if "\t" in first_line and "," not in first_line:
        return "\t"
    return ","


def decode_text(content: bytes) -> str:
    """Decode file bytes as UTF-8 (BOM stripped), falling back to Latin-1."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")
    return text.lstrip("\ufeff")


# ============================================================================
# Extracted text (PDF text layer / OCR)
# ============================================================================


def matrix_from_extracted_text(text: str) -> list[list[str]]:
    """
    Split extracted text into a matrix.

    Comma-bearing text is parsed as CSV; otherwise each line is split on
    tabs, then pipes, then runs of two or more spaces.

    Returns:
        Matrix with at least two rows, or [] if that is not possible
    """
    if not text.strip():
        return []

    if "," in text:
        matrix = parse_delimited(text, ",")
        return matrix if len(matrix) >= 2 else []

    matrix = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if "\t" in line:
            cells = line.split("\t")
        elif "|" in line:
            cells = line.split("|")
        else:
            cells = re.split(r"\s{2,}", line)
        cells = [cell.strip() for cell in cells]
        if any(cells):
            matrix.append(cells)

    return matrix if len(matrix) >= 2 else []


def is_low_structure(matrix: list[list[str]]) -> bool:
    """
    Decide whether a matrix is too weakly structured to trust.

    Low structure means a header with at most one column, or at most 30% of
    the first data rows having three or more cells.
    """
    if len(matrix) < 2:
        return True
    if len(matrix[0]) <= 1:
        return True

    sample = matrix[1 : 1 + STRUCTURE_SAMPLE_ROWS]
    if not sample:
        return True
    structured = sum(1 for row in sample if len(row) >= MIN_STRUCTURED_CELLS)
    return structured <= int(len(sample) * MAX_STRUCTURED_RATIO)


# ============================================================================
# Loose text fallback
# ============================================================================


def _printable_ratio(line: str) -> float:
    if not line:
        return 0.0
    printable = sum(1 for char in line if 32 <= ord(char) <= 126)
    return printable / len(line)


def is_pdf_noise(line: str) -> bool:
    """Check for PDF object syntax and cross-reference rows."""
    lowered = line.strip().lower()
    if not lowered:
        return True
    if any(pattern.search(lowered) for pattern in PDF_NOISE_PATTERNS):
        return True
    if any(token in lowered for token in PDF_NOISE_TOKENS):
        return True
    # Object references like "12 0 R" dominate binary streams
    if re.fullmatch(r"(?:\d+\s+\d+\s+r\s*)+", lowered):
        return True
    return False


def _has_signal(line: str) -> bool:
    return has_money_keyword(line) or bool(REFERENCE_CODE_RE.search(line))


def _amounts_in(line: str) -> list[tuple[Decimal, bool]]:
    """
    Find amount tokens in a line.

    Returns:
        (absolute amount, currency-marked) pairs, in line order
    """
    text = CURRENCY_GLUE_RE.sub(r"\1 ", DATE_TOKEN_RE.sub(" ", line))
    found = []
    for match in AMOUNT_TOKEN_RE.finditer(text):
        amount = abs(parse_signed_amount(match.group(0)))
        if amount <= 0 or amount >= MAX_PLAUSIBLE_AMOUNT:
            continue
        before = text[max(0, match.start() - 6) : match.start()]
        after = text[match.end() : match.end() + 3]
        marked = bool(CURRENCY_MARKER_RE.search(before) or after.startswith("/="))
        found.append((amount, marked))
    return found


def _format_amount(amount: Decimal) -> str:
    return f"{amount:.2f}" if amount else ""


def matrix_from_loose_text(text: str, allow_amount_only: bool = False) -> list[list[str]]:
    """
    Recover transaction rows from unstructured text, one row per line.

    Args:
        text: Free text (PDF text layer, OCR output, or a badly formed file)
        allow_amount_only: Accept a bare amount when the previous line gave
            context (photos often split a label and its amount)

    Returns:
        Matrix with LOOSE_HEADERS as the header row, or [] if no line
        qualified
    """
    rows: list[list[str]] = []
    context = ""

    for raw_line in text.splitlines():
        line = re.sub(r"\s+", " ", raw_line).strip()
        if not line:
            continue
        if _printable_ratio(line) < MIN_PRINTABLE_RATIO or is_pdf_noise(line):
            continue
        if LONG_NUMBER_RE.search(line) and not _has_signal(line):
            continue

        amounts = _amounts_in(line)
        if not amounts:
            if re.search(r"[A-Za-z]", line):
                context = line
            continue

        signal = _has_signal(line)
        context_signal = bool(context) and _has_signal(context)
        if not signal and not (allow_amount_only and context_signal):
            continue

        # Small numbers are line counters or quantities unless marked as money
        kept = [amount for amount, marked in amounts if marked or amount >= MIN_MARKED_AMOUNT]
        if not kept:
            continue

        amount = max(kept)
        description = line if signal else f"{context} {line}".strip()
        fee = Decimal("0")
        if contains_any(description, FEE_KEYWORDS):
            others = [value for value in kept if value != amount]
            if others:
                fee = min(others)

        direction = guess_direction(description)
        channel = infer_channel(description)
        row_date = ""
        date_match = DATE_TOKEN_RE.search(line)
        if date_match:
            row_date = to_iso_date(date_match.group(0)) or ""

        rows.append(
            [
                row_date,
                _format_amount(amount) if direction == Direction.IN else "",
                _format_amount(amount) if direction == Direction.OUT else "",
                description,
                "",
                infer_category(description, fallback="Unstructured"),
                _format_amount(fee),
                find_reference(description),
                channel.value if channel != PaymentChannel.UNKNOWN else "",
                channel.value if channel != PaymentChannel.UNKNOWN else "",
            ]
        )
        context = ""

    if not rows:
        return []

    logger.debug(f"Recovered {len(rows)} rows from loose text")
    return [list(LOOSE_HEADERS)] + rows
