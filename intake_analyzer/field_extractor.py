"""Domain field extraction with ordered regex rules, first match wins"""
import re
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from .confidence_scorer import ConfidenceScorer
from .models import ExtractedField, Provenance
from .preprocessor import Preprocessor

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'sept': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}
FULL_MONTHS = (
    'january', 'february', 'march', 'april', 'may', 'june', 'july',
    'august', 'september', 'october', 'november', 'december',
)
MONTH_DATE_PARTS_RE = re.compile(r'^([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})$')

NAME = r'([A-Z][a-z]+\s+[A-Z][a-z]+)'
MONTH_DATE = r'([A-Z][a-z]+\.?\s+\d{1,2},?\s+\d{4})'
NUMERIC_DATE = r'(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})'
MONEY = r'(\d[\d,]*(?:\.\d{2})?)'

Extractor = Callable[[re.Match, date], Optional[Any]]
FieldRule = Tuple[re.Pattern, Extractor]


def parse_month_date(text: str) -> Optional[date]:
    """Parse "March 5, 2025" / "Mar. 5 2025"; None if it is not a real date"""
    m = MONTH_DATE_PARTS_RE.match(text.strip())
    if not m:
        return None
    month_name, day, year = m.groups()
    month = MONTHS.get(month_name.lower()[:4]) or MONTHS.get(month_name.lower()[:3])
    if month is None:
        return None
    # Full names must be real months, not words that share a prefix ("Mayor")
    if len(month_name) > 4 and month_name.lower() != FULL_MONTHS[month - 1]:
        return None
    try:
        return date(int(year), month, int(day))
    except ValueError:
        return None


def parse_iso_date(text: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD string, falling back to month-name dates"""
    if not text:
        return None
    try:
        return date.fromisoformat(str(text)[:10])
    except ValueError:
        return parse_month_date(str(text))


def _group(m: re.Match, today: date) -> Optional[str]:
    value = m.group(1).strip().rstrip(',')
    return value or None


def _month_date(m: re.Match, today: date) -> str:
    parsed = parse_month_date(m.group(1))
    return parsed.isoformat() if parsed else m.group(1)


def _numeric_date(m: re.Match, today: date) -> Optional[str]:
    month, day, year = m.group(1), m.group(2), m.group(3)
    if len(year) == 2:
        year = '20' + year
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        # Not an M/D/Y date; let the next rule try
        return None


def _relative_days(m: re.Match, today: date) -> str:
    return (today + timedelta(days=int(m.group(1)))).isoformat()


def _amount(m: re.Match, today: date) -> Optional[float]:
    cleaned = m.group(1).replace(',', '')
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return int(value) if value.is_integer() else value


def _rule(pattern: str, extractor: Extractor = _group) -> FieldRule:
    return re.compile(pattern), extractor


FIELD_RULES: Dict[str, List[FieldRule]] = {
    'plaintiffName': [
        _rule(r'(?i:plaintiff)[:\s]+' + NAME),
        _rule(r'(?i:on\s+behalf\s+of)[:\s]+' + NAME),
        _rule(r'(?i:claimant)[:\s]+' + NAME),
    ],
    'attorneyName': [
        _rule(r'(?i:attorney)[:\s]+' + NAME),
        _rule(r'(?i:counsel)[:\s]+' + NAME),
        _rule(r'(?i:esq)\.?[,\s]+' + NAME),
    ],
    'attorneyFirm': [
        _rule(r'([A-Z][a-z]+(?:\s+&\s+[A-Z][a-z]+|\s+[A-Z][a-z]+)*\s+(?:Law|Legal|LLP|LLC|PLLC|P\.?C\.?))(?![A-Za-z])'),
        _rule(r'(?i:law\s+firm)[:\s]+([A-Z][A-Za-z&,]*(?:\s+[A-Z&][A-Za-z&,]*)*)'),
    ],
    'caseNumber': [
        _rule(r'(?i:case\s+(?:no\.?|number|#))\s*[:.]?\s*([A-Za-z0-9][A-Za-z0-9:\-/.]*\d[A-Za-z0-9\-]*)'),
        _rule(r'(?i:civil\s+action\s+no\.?)\s*[:.]?\s*([A-Za-z0-9][A-Za-z0-9:\-/.]*\d[A-Za-z0-9\-]*)'),
    ],
    'courtName': [
        _rule(r'((?i:united\s+states\s+district\s+court)(?:\s+(?i:for\s+the)\s+[A-Z][A-Za-z]+\s+(?i:district\s+of)\s+[A-Z][A-Za-z]+(?:\s+[A-Z][a-z]+)?)?)'),
        _rule(r'((?i:superior|circuit|district)\s+(?i:court)\s+(?i:of|for)\s+(?:the\s+)?(?:(?i:state|county)\s+of\s+)?[A-Z][A-Za-z]+(?:\s+[A-Z][a-z]+)?)'),
        _rule(r'([A-Z][a-z]+\s+(?i:county)\s+(?:(?i:superior|circuit|district|civil)\s+)?(?i:court))'),
    ],
    'filingDate': [
        _rule(r'\b(?i:dated|filed(?:\s+on)?|date)[:\s]+' + MONTH_DATE, _month_date),
        _rule(r'\b(?i:dated|filed(?:\s+on)?|date)[:\s]+' + NUMERIC_DATE, _numeric_date),
    ],
    'responseDeadline': [
        _rule(r'(?i:respond\s+(?:by|before|within))[:\s]+' + MONTH_DATE, _month_date),
        _rule(r'(?i:deadline)[:\s]+' + MONTH_DATE, _month_date),
        _rule(r'\b' + NUMERIC_DATE + r'\b', _numeric_date),
        _rule(r'(?i:within)\s+(?:[A-Za-z-]+\s+)?\(?(\d+)\)?\s+(?i:days)', _relative_days),
    ],
    'settlementAmount': [
        _rule(r'\$\s?' + MONEY, _amount),
        _rule(r'(?i:settlement)[:\s]+(?:(?i:of)\s+)?\$?' + MONEY, _amount),
        _rule(r'(?i:damages)[:\s]+(?:(?i:of)\s+)?\$?' + MONEY, _amount),
    ],
}

VIOLATION_PATTERNS = [
    re.compile(r'(?i:wcag)\s*\d(?:\.\d+)*'),
    re.compile(r'(?i:section)\s*508'),
    re.compile(r'(?i:ada)\s*(?i:title)\s*(?:I{1,3}|\d+)\b'),
    re.compile(r'(?i:alt\s+text|color\s+contrast|keyboard\s+navigation|screen\s+reader)'),
]


class FieldExtractor:
    """Runs the ordered rule lists over document text"""

    def __init__(self, rules: Optional[Dict[str, List[FieldRule]]] = None):
        self.rules = rules if rules is not None else FIELD_RULES
        self.preprocessor = Preprocessor()
        self.scorer = ConfidenceScorer()

    def extract_fields(self, text: str, today: Optional[date] = None) -> Dict[str, ExtractedField]:
        """
        Extract every domain field that has a matching rule

        Args:
            text: Normalized document text
            today: Reference date for relative deadlines ("within 10 days")

        Returns:
            Mapping of field name to ExtractedField; fields with no match are absent
        """
        today = today or date.today()
        tokens = set(self.preprocessor.tokenize(text))
        fields = {}

        for field_name, rules in self.rules.items():
            for pattern, extractor in rules:
                match = pattern.search(text)
                if not match:
                    continue
                value = extractor(match, today)
                if value is None:
                    continue
                fields[field_name] = ExtractedField(
                    value=value,
                    confidence=self.scorer.score_match(pattern, tokens),
                    provenance=Provenance.REGEX,
                )
                break

        return fields

    def extract_violations(self, text: str) -> List[str]:
        """Accessibility standards and barriers cited, deduplicated in order found"""
        found = []
        for pattern in VIOLATION_PATTERNS:
            found.extend(m.group(0).strip() for m in pattern.finditer(text))
        return list(dict.fromkeys(found))
