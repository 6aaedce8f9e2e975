"""Heuristic text recovery from raw PDF bytes and plain-text uploads"""
import logging
import re

from .config import MIN_EXTRACTED_TEXT_LENGTH
from .preprocessor import Preprocessor

logger = logging.getLogger(__name__)

STREAM_RE = re.compile(r'stream\s*(.*?)\s*endstream', re.IGNORECASE | re.DOTALL)
# Literal string: "(" ... ")" where escaped characters (including \) and \() never terminate it
LITERAL_RE = re.compile(r'\(((?:\\.|[^\\)])*)\)', re.DOTALL)
TJ_ARRAY_RE = re.compile(r'\[(.*?)\]\s*TJ', re.IGNORECASE)
ESCAPE_RE = re.compile(r'\\([nrt()\\])')

ESCAPES = {
    'n': '\n',
    'r': '\r',
    't': '\t',
    '(': '(',
    ')': ')',
    '\\': '\\',
}


def unescape_literal(literal: str) -> str:
    """Resolve PDF literal-string escapes in one pass"""
    return ESCAPE_RE.sub(lambda m: ESCAPES[m.group(1)], literal)


class TextExtractor:
    """Recovers visible text from documents without a PDF library.

    This is a token scanner, not a PDF parser: it reads literal strings out of
    uncompressed content streams. Flate-encoded streams yield nothing, so
    callers need a vision fallback for those documents.
    """

    def __init__(self, min_length: int = MIN_EXTRACTED_TEXT_LENGTH):
        self.preprocessor = Preprocessor()
        self.min_length = min_length

    def extract_pdf_text(self, pdf_bytes: bytes) -> str:
        """
        Extract text from raw PDF bytes

        Args:
            pdf_bytes: PDF file as bytes

        Returns:
            Collapsed plaintext, or "" when fewer than ``min_length`` printable
            characters were recovered (image-based, compressed or encrypted PDF)
        """
        pdf_string = pdf_bytes.decode('latin-1')
        fragments = []

        for stream in STREAM_RE.finditer(pdf_string):
            for literal in LITERAL_RE.finditer(stream.group(1)):
                fragments.append(unescape_literal(literal.group(1)))

        for array in TJ_ARRAY_RE.finditer(pdf_string):
            parts = [unescape_literal(p.group(1)) for p in LITERAL_RE.finditer(array.group(1))]
            fragments.append(''.join(parts))

        text = self.preprocessor.normalize_text(' '.join(fragments))

        if len(text) < self.min_length:
            logger.info("Minimal text extracted (%d chars), PDF may be image-based or encrypted", len(text))
            return ''

        logger.info("Extracted %d characters from PDF", len(text))
        return text

    def decode_plain_text(self, content_bytes: bytes) -> str:
        """Decode a text upload byte-for-byte and keep only printable content"""
        return self.preprocessor.normalize_text(content_bytes.decode('latin-1'))
