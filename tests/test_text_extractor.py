"""
Tests for byte-level PDF text recovery and plain-text decoding.
"""

import pytest

from intake_analyzer.text_extractor import TextExtractor, unescape_literal
from conftest import DEMAND_LETTER, demand_letter_pdf, make_compressed_pdf, make_pdf


class TestPdfTextExtraction:
    """PDF literal-string scanning"""

    @pytest.fixture
    def extractor(self):
        return TextExtractor()

    def test_recovers_text_from_uncompressed_stream(self, extractor):
        text = extractor.extract_pdf_text(demand_letter_pdf())

        assert "Plaintiff: John Smith" in text
        assert "$15,000" in text
        assert "\n" not in text
        assert "  " not in text

    def test_escaped_parentheses_and_backslashes(self, extractor):
        line = "Settlement (inclusive of fees) is due; path C:\\docs " * 3
        text = extractor.extract_pdf_text(make_pdf([line]))

        assert "(inclusive of fees)" in text
        assert "C:\\docs" in text

    def test_tj_arrays_are_concatenated(self, extractor):
        filler = "This notice concerns the accessibility of the public website. " * 2
        pdf = make_pdf([filler]) + b"\nBT [(Resp) -20 (onse due) 10 ( soon)] TJ ET\n"

        text = extractor.extract_pdf_text(pdf)

        assert "Response due soon" in text

    def test_compressed_streams_signal_failure(self, extractor):
        assert extractor.extract_pdf_text(make_compressed_pdf()) == ""

    def test_short_text_is_treated_as_failure(self, extractor):
        assert extractor.extract_pdf_text(make_pdf(["Too short to trust"])) == ""

    def test_non_pdf_bytes_do_not_raise(self, extractor):
        assert extractor.extract_pdf_text(b"\x89PNG\r\n\x1a\n\x00\x00binary") == ""

    def test_non_printable_bytes_are_removed(self, extractor):
        line = "Notice\x01\x02 of claim " * 10
        text = extractor.extract_pdf_text(make_pdf([line]))

        assert "\x01" not in text
        assert "Notice of claim" in text


class TestUnescape:

    def test_single_pass_unescape(self):
        # "\\n" is an escaped backslash followed by a literal n, not a newline
        assert unescape_literal(r"a\\nb") == "a\\nb"
        assert unescape_literal(r"a\nb\tc\(d\)") == "a\nb\tc(d)"


class TestPlainTextDecoding:

    def test_decodes_and_collapses(self):
        text = TextExtractor().decode_plain_text(DEMAND_LETTER.encode("utf-8"))

        assert text.startswith("DEMAND LETTER")
        assert "Plaintiff: John Smith Attorney: Jane Doe" in text

    def test_non_ascii_bytes_become_spaces(self):
        text = TextExtractor().decode_plain_text("Caf\u00e9 \u00a7 12182".encode("utf-8"))

        assert text == "Caf 12182"
