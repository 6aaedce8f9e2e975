"""Specificity-based confidence for regex-extracted fields"""
import re
from typing import Iterable, Union

BASE_CONFIDENCE = 0.7
CONTEXT_BONUS = 0.2
DIGIT_CLASS_BONUS = 0.1

CONTEXT_TERMS = ('plaintiff', 'attorney', 'counsel', 'esq', 'firm')


class ConfidenceScorer:
    """Scores a regex match by how specific its pattern is.

    Not a statistical estimate: a pattern anchored on a domain term, in a
    document that actually uses such terms, earns more than a bare shape match.
    """

    def __init__(self, context_terms: Iterable[str] = CONTEXT_TERMS):
        self.context_terms = frozenset(context_terms)

    def score_match(self, pattern: Union[re.Pattern, str], tokens: Iterable[str]) -> float:
        """
        Confidence for a value found by ``pattern``

        Args:
            pattern: The rule pattern that matched
            tokens: Tokenized document text (see Preprocessor.tokenize)

        Returns:
            Confidence in [0, 1]
        """
        source = pattern.pattern if isinstance(pattern, re.Pattern) else pattern
        source_lower = source.lower()

        confidence = BASE_CONFIDENCE

        if any(term in source_lower for term in self.context_terms):
            if not self.context_terms.isdisjoint(tokens):
                confidence += CONTEXT_BONUS

        if r'\d' in source:
            confidence += DIGIT_CLASS_BONUS

        return round(min(1.0, max(0.0, confidence)), 2)
