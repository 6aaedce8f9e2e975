"""Deterministic analysis: regex fields + entities + classification -> AnalysisRecord"""
import re
from datetime import date
from typing import List, Optional

from .classifier import DocumentClassification, assess_urgency, classify_document, days_until
from .entities import EntityExtractor
from .field_extractor import FieldExtractor
from .models import AnalysisRecord, LegalAssessment, UrgencyLevel

DEFAULT_KEY_POINTS = [
    'Document uploaded successfully',
    'Manual review recommended for detailed analysis',
]
DEFAULT_ACTIONS = [
    'Review document contents carefully',
    'Determine if any action is required',
]
DEFAULT_RESOURCES = [
    'Help Center',
    'Professional Resources Directory',
]
LEGAL_RESOURCES = [
    'ADA Compliance Attorneys in your area',
    'Web Accessibility Guidelines (WCAG 2.1)',
    'ADA Title III Technical Assistance',
    'Professional Accessibility Auditors',
]

# (cue pattern, claim type), first hit wins
CLAIM_TYPE_CUES = (
    (re.compile(r'\b(?:website|web\s?site|online|mobile\s+app|wcag|screen\s+reader)', re.IGNORECASE),
     'ADA Website Accessibility'),
    (re.compile(r'\b(?:parking|ramp|entrance|restroom|wheelchair|curb)', re.IGNORECASE),
     'Physical Accessibility'),
    (re.compile(r'\b(?:employ|hiring|workplace|reasonable\s+accommodation)', re.IGNORECASE),
     'Employment ADA'),
    (re.compile(r'\b(?:ada\b|americans\s+with\s+disabilities)', re.IGNORECASE),
     'ADA Accessibility'),
)


def format_money(amount: float) -> str:
    """$15,000 for whole amounts, $1,250.50 otherwise"""
    if float(amount).is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"


def _key_points(classification: DocumentClassification, plaintiff, attorney, firm,
                deadline, amount, violations: List[str]) -> List[str]:
    points = []
    if classification.document_type != 'General Document':
        points.append(f"Document Type: {classification.document_type}")
    if plaintiff:
        points.append(f"Plaintiff/Claimant: {plaintiff}")
    if attorney or firm:
        representation = f"{attorney or ''} {f'({firm})' if firm else ''}".strip()
        points.append(f"Legal Representation: {representation}")
    if deadline:
        points.append(f"Response Deadline: {deadline}")
    if amount:
        points.append(f"Settlement/Damages Amount: {format_money(amount)}")
    if violations:
        points.append(f"Violations Cited: {', '.join(violations)}")
    return points or list(DEFAULT_KEY_POINTS)


def _recommended_actions(classification: DocumentClassification, deadline, amount) -> List[str]:
    if classification.is_legal:
        actions = ['Consult with an ADA compliance attorney immediately']
        if deadline:
            actions.append(f"Calendar the response deadline: {deadline}")
        actions.append('Gather documentation of your website accessibility efforts')
        actions.append('Run an accessibility audit on your website')
        if amount:
            actions.append('Review your insurance coverage for ADA claims')
        return actions
    if classification.is_medical:
        return ['File document with relevant medical records',
                'Follow up with healthcare provider if needed']
    if classification.is_financial:
        return ['Review payment terms and deadlines',
                'Verify accuracy of charges']
    return list(DEFAULT_ACTIONS)


def _summary(classification: DocumentClassification, file_name: str,
             plaintiff, attorney, firm, deadline, amount) -> str:
    if not classification.is_legal:
        return (f"This document ({file_name}) has been uploaded for analysis. "
                f"It appears to be a {classification.document_type.lower()}. "
                "Please review the extracted information and take appropriate action.")

    parts = [f"This appears to be a {classification.document_type.lower()}"]
    if plaintiff:
        parts.append(f"from {plaintiff}")
    if attorney or firm:
        parts.append(f"represented by {attorney or firm}")
    summary = ' '.join(parts) + ' regarding potential ADA accessibility violations.'
    if amount:
        summary += f" The document references a potential settlement amount of {format_money(amount)}."
    if deadline:
        summary += f" A response is requested by {deadline}."
    return summary + ' Immediate legal consultation is recommended.'


def _legal_assessment(text: str, court: Optional[str], deadline, amount,
                      urgency: UrgencyLevel, today: date) -> LegalAssessment:
    claim_type = 'General Legal Claim'
    for cue, label in CLAIM_TYPE_CUES:
        if cue.search(text):
            claim_type = label
            break

    remaining = days_until(deadline, today)
    if remaining is not None:
        reason = f"a response deadline {remaining} day(s) away"
    elif amount:
        reason = f"a claimed amount of {format_money(amount)}"
    else:
        reason = 'the legal nature of the document with no stated deadline'

    return LegalAssessment(
        claim_type=claim_type,
        jurisdiction=court,
        risk_assessment=f"{urgency.value.capitalize()} risk based on {reason}. "
                        "Pattern-based assessment; confirm with counsel.",
    )


def compose_analysis(text: str, file_name: str, today: Optional[date] = None) -> AnalysisRecord:
    """
    Build a full AnalysisRecord from plaintext using only deterministic rules

    Args:
        text: Normalized document text
        file_name: Original upload name, used in the generic summary
        today: Reference date for relative deadlines and urgency

    Returns:
        AnalysisRecord with regex provenance on every extracted field
    """
    today = today or date.today()
    field_extractor = FieldExtractor()

    classification = classify_document(text)
    fields = field_extractor.extract_fields(text, today)
    violations = field_extractor.extract_violations(text)
    entities = EntityExtractor().extract(text)

    def value(name):
        extracted = fields.get(name)
        return extracted.value if extracted is not None else None

    plaintiff = value('plaintiffName')
    attorney = value('attorneyName')
    firm = value('attorneyFirm')
    deadline = value('responseDeadline')
    amount = value('settlementAmount')

    urgency = assess_urgency(deadline, amount, classification.is_legal, today)

    legal_assessment = None
    if classification.is_legal:
        legal_assessment = _legal_assessment(text, value('courtName'), deadline, amount, urgency, today)

    return AnalysisRecord(
        document_type=classification.document_type,
        document_summary=_summary(classification, file_name, plaintiff, attorney, firm, deadline, amount),
        key_points=_key_points(classification, plaintiff, attorney, firm, deadline, amount, violations),
        recommended_actions=_recommended_actions(classification, deadline, amount),
        urgency_level=urgency,
        additional_resources=list(LEGAL_RESOURCES if classification.is_legal else DEFAULT_RESOURCES),
        extracted_fields=fields,
        violations_cited=violations,
        entities=entities,
        legal_assessment=legal_assessment,
    )
