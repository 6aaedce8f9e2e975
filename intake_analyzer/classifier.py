"""Document-type classification and urgency assessment"""
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from .field_extractor import parse_iso_date
from .models import UrgencyLevel

LEGAL_KEYWORDS = (
    'attorney', 'law firm', 'plaintiff', 'defendant', 'demand', 'settlement',
    'compliance', r'ada\b', 'americans with disabilities',
)
MEDICAL_KEYWORDS = ('patient', 'diagnosis', 'prescription', 'medical')
FINANCIAL_KEYWORDS = ('invoice', 'balance due', 'payment', 'account')

# Checked in order within legal documents; the first hit names the type
LEGAL_SUBTYPES = (
    ('demand', 'Legal Demand Letter'),
    ('complaint', 'Legal Complaint'),
    ('settlement', 'Settlement Agreement'),
)

GENERAL_DOCUMENT = 'General Document'
LEGAL_NOTICE = 'Legal Notice'
MEDICAL_DOCUMENT = 'Medical Document'
FINANCIAL_DOCUMENT = 'Financial Document'

# (max days until deadline, urgency), nearest first
DEADLINE_TIERS: Tuple[Tuple[int, UrgencyLevel], ...] = (
    (7, UrgencyLevel.CRITICAL),
    (14, UrgencyLevel.HIGH),
    (30, UrgencyLevel.MEDIUM),
)
HIGH_SETTLEMENT_THRESHOLD = 10000


def _keyword_re(keywords) -> re.Pattern:
    return re.compile(r'\b(?:' + '|'.join(keywords) + ')', re.IGNORECASE)


LEGAL_RE = _keyword_re(LEGAL_KEYWORDS)
MEDICAL_RE = _keyword_re(MEDICAL_KEYWORDS)
FINANCIAL_RE = _keyword_re(FINANCIAL_KEYWORDS)


@dataclass(frozen=True)
class DocumentClassification:
    document_type: str
    is_legal: bool
    is_medical: bool
    is_financial: bool


def classify_document(text: str) -> DocumentClassification:
    """Lexical bucket classification: legal > medical > financial > general"""
    lower_text = text.lower()
    is_legal = LEGAL_RE.search(text) is not None
    is_medical = MEDICAL_RE.search(text) is not None
    is_financial = FINANCIAL_RE.search(text) is not None

    if is_legal:
        document_type = LEGAL_NOTICE
        for keyword, label in LEGAL_SUBTYPES:
            if keyword in lower_text:
                document_type = label
                break
    elif is_medical:
        document_type = MEDICAL_DOCUMENT
    elif is_financial:
        document_type = FINANCIAL_DOCUMENT
    else:
        document_type = GENERAL_DOCUMENT

    return DocumentClassification(document_type, is_legal, is_medical, is_financial)


def days_until(deadline: Optional[str], today: date) -> Optional[int]:
    """Whole days from today to the deadline, or None if it cannot be parsed"""
    parsed = parse_iso_date(deadline)
    if parsed is None:
        return None
    return (parsed - today).days


def assess_urgency(response_deadline: Optional[str],
                   settlement_amount: Optional[float],
                   is_legal: bool,
                   today: Optional[date] = None) -> UrgencyLevel:
    """
    Urgency from the most authoritative signal available

    Deadline proximity wins over the settlement amount, which wins over the
    mere fact of being a legal document. Overdue deadlines count as critical.
    """
    today = today or date.today()
    remaining = days_until(response_deadline, today)

    if remaining is not None:
        for max_days, level in DEADLINE_TIERS:
            if remaining <= max_days:
                return level
        return UrgencyLevel.LOW

    if settlement_amount and settlement_amount > HIGH_SETTLEMENT_THRESHOLD:
        return UrgencyLevel.HIGH
    if is_legal:
        return UrgencyLevel.MEDIUM
    return UrgencyLevel.LOW
