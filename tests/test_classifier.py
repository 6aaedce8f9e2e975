"""
Tests for document-type classification and urgency tiers.
"""

from datetime import timedelta

import pytest

from intake_analyzer.classifier import assess_urgency, classify_document, days_until
from intake_analyzer.models import UrgencyLevel
from conftest import DEMAND_LETTER, GENERAL_TEXT, TODAY

URGENCY_RANK = {
    UrgencyLevel.LOW: 0,
    UrgencyLevel.MEDIUM: 1,
    UrgencyLevel.HIGH: 2,
    UrgencyLevel.CRITICAL: 3,
}


def deadline_in(days):
    return (TODAY + timedelta(days=days)).isoformat()


class TestClassification:

    def test_demand_letter(self):
        result = classify_document(DEMAND_LETTER)

        assert result.document_type == "Legal Demand Letter"
        assert result.is_legal

    def test_general_document(self):
        result = classify_document(GENERAL_TEXT)

        assert result.document_type == "General Document"
        assert not (result.is_legal or result.is_medical or result.is_financial)

    @pytest.mark.parametrize("text,expected", [
        ("The defendant received the complaint yesterday.", "Legal Complaint"),
        ("This settlement agreement is made between the parties.", "Settlement Agreement"),
        ("The attorney reviewed our compliance program.", "Legal Notice"),
        ("Patient diagnosis and prescription history.", "Medical Document"),
        ("Invoice 1042: balance due on your account.", "Financial Document"),
    ])
    def test_buckets(self, text, expected):
        assert classify_document(text).document_type == expected

    def test_legal_takes_priority(self):
        result = classify_document("Plaintiff's medical invoice is attached.")

        assert result.document_type == "Legal Notice"
        assert result.is_legal and result.is_medical and result.is_financial

    def test_keywords_match_at_word_start(self):
        assert classify_document("Our trip to Canada with Adam.").document_type == "General Document"
        assert classify_document("Accessibility under the ADA.").is_legal


class TestUrgency:

    @pytest.mark.parametrize("days,expected", [
        (-3, UrgencyLevel.CRITICAL),
        (0, UrgencyLevel.CRITICAL),
        (7, UrgencyLevel.CRITICAL),
        (8, UrgencyLevel.HIGH),
        (14, UrgencyLevel.HIGH),
        (15, UrgencyLevel.MEDIUM),
        (30, UrgencyLevel.MEDIUM),
        (31, UrgencyLevel.LOW),
    ])
    def test_deadline_tiers(self, days, expected):
        assert assess_urgency(deadline_in(days), None, True, TODAY) == expected

    def test_deadline_outranks_amount(self):
        assert assess_urgency(deadline_in(60), 50000, True, TODAY) == UrgencyLevel.LOW

    def test_large_amount_without_deadline(self):
        assert assess_urgency(None, 15000, False, TODAY) == UrgencyLevel.HIGH

    def test_threshold_amount_is_not_high(self):
        assert assess_urgency(None, 10000, True, TODAY) == UrgencyLevel.MEDIUM
        assert assess_urgency(None, 10000, False, TODAY) == UrgencyLevel.LOW

    def test_unparseable_deadline_is_ignored(self):
        assert assess_urgency("13/45/2026", None, True, TODAY) == UrgencyLevel.MEDIUM
        assert days_until("next Friday", TODAY) is None

    def test_urgency_never_drops_as_deadline_nears(self):
        levels = [assess_urgency(deadline_in(d), None, True, TODAY) for d in range(60, -10, -1)]
        ranks = [URGENCY_RANK[level] for level in levels]

        assert ranks == sorted(ranks)
