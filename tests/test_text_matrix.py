"""Tests for text-to-matrix parsing."""

from ledger_intake.extractors.text_matrix import (
    LOOSE_HEADERS,
    decode_text,
    detect_delimiter,
    is_low_structure,
    is_pdf_noise,
    matrix_from_extracted_text,
    matrix_from_loose_text,
    parse_delimited,
)


class TestParseDelimited:
    """Tests for the RFC4180 parser."""

    def test_simple_rows(self):
        matrix = parse_delimited("a,b,c\n1,2,3\n")
        assert matrix == [["a", "b", "c"], ["1", "2", "3"]]

    def test_quoted_field_with_delimiter_and_newline(self):
        """A quoted field keeps embedded commas and line breaks."""
        text = 'date,description,cash_in\n2026-01-05,"Paid, then\nrefunded",500\n'

        matrix = parse_delimited(text)

        assert matrix == [
            ["date", "description", "cash_in"],
            ["2026-01-05", "Paid, then\nrefunded", "500"],
        ]

    def test_doubled_quotes(self):
        matrix = parse_delimited('name\n"The ""Best"" Shop"\n')
        assert matrix[1] == ['The "Best" Shop']

    def test_crlf_line_endings(self):
        matrix = parse_delimited("a,b\r\n1,2\r\n")
        assert matrix == [["a", "b"], ["1", "2"]]

    def test_blank_rows_dropped(self):
        matrix = parse_delimited("a,b\n,\n\n1,2")
        assert matrix == [["a", "b"], ["1", "2"]]

    def test_cells_trimmed(self):
        matrix = parse_delimited(" a , b \n 1 , 2 ")
        assert matrix == [["a", "b"], ["1", "2"]]

    def test_tab_delimiter(self):
        matrix = parse_delimited("a\tb\n1\t2", delimiter="\t")
        assert matrix == [["a", "b"], ["1", "2"]]


class TestDelimiterDetection:
    """Tests for delimiter and encoding detection."""

    def test_tsv_extension(self):
        assert detect_delimiter("a,b", "export.tsv") == "\t"

    def test_tabs_without_commas(self):
        assert detect_delimiter("a\tb\n1\t2", "export.txt") == "\t"

    def test_defaults_to_comma(self):
        assert detect_delimiter("a,b\tc", "export.txt") == ","

    def test_decode_strips_bom(self):
        assert decode_text("\ufeffdate,amount".encode("utf-8")) == "date,amount"

    def test_decode_falls_back_to_latin1(self):
        assert decode_text("Caf\xe9".encode("latin-1")) == "Café"


class TestExtractedText:
    """Tests for splitting PDF / OCR text."""

    def test_comma_text_parsed_as_csv(self):
        matrix = matrix_from_extracted_text("date,amount\n2026-01-01,500")
        assert matrix == [["date", "amount"], ["2026-01-01", "500"]]

    def test_space_runs_split_columns(self):
        text = "Date        Description      Amount\n2026-01-01  Rent             15000"

        matrix = matrix_from_extracted_text(text)

        assert matrix[0] == ["Date", "Description", "Amount"]
        assert matrix[1] == ["2026-01-01", "Rent", "15000"]

    def test_pipes_split_columns(self):
        matrix = matrix_from_extracted_text("a|b\n1|2")
        assert matrix == [["a", "b"], ["1", "2"]]

    def test_single_line_is_not_a_matrix(self):
        assert matrix_from_extracted_text("just one line") == []

    def test_empty_text(self):
        assert matrix_from_extracted_text("   ") == []


class TestLowStructure:
    """Tests for the weak-structure heuristic."""

    def test_single_column_header(self):
        assert is_low_structure([["text"], ["a"], ["b"]]) is True

    def test_header_only(self):
        assert is_low_structure([["a", "b", "c"]]) is True

    def test_well_structured(self):
        matrix = [["date", "amount", "note"]] + [["2026-01-01", "5", "x"]] * 5
        assert is_low_structure(matrix) is False

    def test_mostly_short_rows(self):
        matrix = [["date", "amount", "note"]] + [["just text"]] * 9 + [["a", "b", "c"]]
        assert is_low_structure(matrix) is True


class TestPdfNoise:
    """Tests for PDF boilerplate detection."""

    def test_object_syntax(self):
        assert is_pdf_noise("1 0 obj") is True
        assert is_pdf_noise("<< /Type /Catalog >>") is True
        assert is_pdf_noise("%PDF-1.4") is True
        assert is_pdf_noise("0000000010 00000 n") is True
        assert is_pdf_noise("endobj") is True

    def test_real_line(self):
        assert is_pdf_noise("Paid to Acme Ltd KES 2,300") is False


class TestLooseText:
    """Tests for line-by-line recovery of transactions."""

    def test_recovers_transaction_from_noisy_text(self, sample_noisy_text):
        matrix = matrix_from_loose_text(sample_noisy_text)

        assert matrix[0] == LOOSE_HEADERS
        assert len(matrix) == 2
        row = dict(zip(LOOSE_HEADERS, matrix[1]))
        assert row["cash_out"] == "2300.00"
        assert row["cash_in"] == ""
        assert row["reference_code"] == "TXN1234567A"
        assert row["description"] == "Paid to Acme Ltd KES 2,300 TXN1234567A"

    def test_inbound_line(self):
        matrix = matrix_from_loose_text("Received KES 1,500 from Mary")

        row = dict(zip(LOOSE_HEADERS, matrix[1]))
        assert row["cash_in"] == "1500.00"
        assert row["cash_out"] == ""

    def test_date_on_line_fills_date(self):
        matrix = matrix_from_loose_text("05/01/2026 Paid rent KES 15,000")

        row = dict(zip(LOOSE_HEADERS, matrix[1]))
        assert row["date"] == "2026-01-05"
        assert row["cash_out"] == "15000.00"
        assert row["category"] == "Rent"

    def test_fee_extracted(self):
        matrix = matrix_from_loose_text("M-Pesa paid KES 2,000 transaction cost KES 23")

        row = dict(zip(LOOSE_HEADERS, matrix[1]))
        assert row["cash_out"] == "2000.00"
        assert row["transaction_cost"] == "23.00"
        assert row["payment_channel"] == "Mobile Transfer"

    def test_small_unmarked_numbers_ignored(self):
        assert matrix_from_loose_text("paid 3 items") == []

    def test_lines_without_money_signal_ignored(self):
        assert matrix_from_loose_text("Opening hours 9 to 5\nAisle 12 shelf 400") == []

    def test_amount_only_line_uses_previous_context(self):
        text = "Total paid\n450"

        assert matrix_from_loose_text(text) == []

        matrix = matrix_from_loose_text(text, allow_amount_only=True)
        row = dict(zip(LOOSE_HEADERS, matrix[1]))
        assert row["description"] == "Total paid 450"
        assert row["cash_out"] == "450.00"
