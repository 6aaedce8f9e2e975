"""Text preprocessing: printable filtering, whitespace collapsing, tokenization"""
import re
from typing import List

NON_PRINTABLE_RE = re.compile(r'[^\x20-\x7E\n\r\t]')
WHITESPACE_RE = re.compile(r'\s+')
TOKEN_RE = re.compile(r'[a-z0-9]+')


class Preprocessor:
    """Normalizes raw decoded text before pattern matching"""

    def __init__(self):
        self.normalization_patterns = [
            (NON_PRINTABLE_RE, ' '),  # Anything outside printable ASCII plus newline/CR/tab
            (WHITESPACE_RE, ' '),     # Multiple spaces to single space
        ]

    def normalize_text(self, text: str) -> str:
        """Replace non-printable characters and collapse whitespace"""
        normalized = text
        for pattern, replacement in self.normalization_patterns:
            normalized = pattern.sub(replacement, normalized)
        return normalized.strip()

    def tokenize(self, text: str) -> List[str]:
        """Lower-cased alphanumeric runs, so "Esq.," and "plaintiff:" tokenize to bare words"""
        return TOKEN_RE.findall(text.lower())
