"""Generic entity extraction: persons, organizations, dates, amounts, legal citations"""
import re
from typing import Callable, Dict, List, Optional

from .models import EntityBag

MAX_PERSON_TOKENS = 3
ORG_SUFFIXES = r'(?:Law|Legal|LLP|LLC|PLLC|P\.C\.|PC|Inc\.?|Corp\.?|Corporation)'

ENTITY_PATTERNS: Dict[str, List[re.Pattern]] = {
    'persons': [
        # Whole capitalized runs; longer runs are headings or titles, not names
        re.compile(r'\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)\b'),
    ],
    'organizations': [
        re.compile(r'\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\s+' + ORG_SUFFIXES + r')(?![A-Za-z])'),
    ],
    'dates': [
        re.compile(r'\b([A-Z][a-z]+\s+\d{1,2},?\s+\d{4})\b'),
        re.compile(r'\b(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})\b'),
    ],
    'amounts': [
        re.compile(r'(\$\s?\d[\d,]*(?:\.\d{2})?)'),
    ],
    'legal_citations': [
        re.compile(r'\b(\d{1,2}\s*U\.?S\.?C\.?\s*(?:§+\s*)?\d[\w-]*(?:\([\w]+\))*)', re.IGNORECASE),
        re.compile(r'\b(\d{1,2}\s*C\.?F\.?R\.?\s*(?:§+\s*)?(?:Part\s+)?\d[\w-]*(?:\.\d[\w-]*)?)', re.IGNORECASE),
        re.compile(r'\b((?i:wcag)\s*\d(?:\.\d+)*(?:\s+A{1,3}\b)?)'),
        re.compile(r'\b(Section\s*508)\b', re.IGNORECASE),
        re.compile(r'\b(ADA\s*Title\s*(?:I{1,3}|\d+))\b', re.IGNORECASE),
    ],
}


def _person_ok(candidate: str) -> bool:
    return len(candidate.split()) <= MAX_PERSON_TOKENS


def _strip_amount(candidate: str) -> str:
    return candidate.rstrip(',')


ENTITY_FILTERS: Dict[str, Callable[[str], bool]] = {
    'persons': _person_ok,
}
ENTITY_CLEANERS: Dict[str, Callable[[str], str]] = {
    'amounts': _strip_amount,
}


class EntityExtractor:
    """Broad, domain-agnostic patterns, run independently of field extraction"""

    def __init__(self, patterns: Optional[Dict[str, List[re.Pattern]]] = None):
        self.patterns = patterns if patterns is not None else ENTITY_PATTERNS

    def extract(self, text: str) -> EntityBag:
        """Collect every entity class; values keep their original textual form"""
        found = {}
        for kind, patterns in self.patterns.items():
            keep = ENTITY_FILTERS.get(kind, lambda _: True)
            clean = ENTITY_CLEANERS.get(kind, lambda v: v)
            values = []
            for pattern in patterns:
                for match in pattern.finditer(text):
                    value = clean(match.group(1).strip())
                    if value and keep(value):
                        values.append(value)
            found[kind] = values
        return EntityBag(**found)
