"""
Tests for the LLM adapter: input mode selection, response parsing and failure handling.
"""

import pytest

from intake_analyzer.llm_client import (
    DETAILED_ADDITION,
    LLMClient,
    build_analysis_prompt,
    extract_json_object,
    parse_analysis_response,
)
from intake_analyzer.models import AnalysisRequest, Provenance, UrgencyLevel
from intake_analyzer.text_extractor import TextExtractor
from conftest import AI_RESPONSE, DEMAND_LETTER, FakeBackend, ai_json, demand_letter_pdf, make_compressed_pdf


def make_request(data: bytes, name: str, mime: str = "", **kwargs) -> AnalysisRequest:
    return AnalysisRequest(file_bytes=data, file_name=name, declared_mime_type=mime, **kwargs)


class TestJsonExtraction:

    def test_object_wrapped_in_prose_and_fences(self):
        assert extract_json_object(ai_json()) == AI_RESPONSE

    def test_first_of_two_objects(self):
        raw = 'Result: {"documentType": "A"} and also {"documentType": "B"}'

        assert extract_json_object(raw) == {"documentType": "A"}

    @pytest.mark.parametrize("raw", ["", "no json here", "{not: valid}", "[1, 2, 3]"])
    def test_unusable_text(self, raw):
        assert extract_json_object(raw) is None


class TestResponseNormalization:

    def test_fields_get_ai_provenance_and_scores(self):
        record = parse_analysis_response(ai_json())

        assert record.field_value("plaintiffName") == "John Smith"
        assert record.extracted_fields["plaintiffName"].provenance == Provenance.AI
        assert record.extracted_fields["plaintiffName"].confidence == 0.95
        assert record.urgency_level == UrgencyLevel.HIGH

    def test_missing_score_uses_default(self):
        record = parse_analysis_response(ai_json())

        assert record.confidence_scores["attorneyFirm"] == 0.5

    def test_scores_only_for_present_fields(self):
        record = parse_analysis_response(ai_json())

        assert "caseNumber" not in record.extracted_fields
        assert "documentType" not in record.confidence_scores
        assert set(record.confidence_scores) == set(record.extracted_fields)

    def test_whole_amount_is_integral(self):
        record = parse_analysis_response(ai_json(settlementAmount="$15,000"))

        assert record.field_value("settlementAmount") == 15000

    def test_entities_are_deduplicated(self):
        record = parse_analysis_response(ai_json())

        assert record.entities.persons == ["John Smith", "Jane Doe"]
        assert record.entities.legal_citations == ["ADA Title III"]

    def test_legal_analysis(self):
        record = parse_analysis_response(ai_json())

        assert record.legal_assessment.claim_type == "ADA Website Accessibility"
        assert record.legal_assessment.potential_defenses == ["Remediation in progress"]

    def test_sparse_response_gets_defaults(self):
        record = parse_analysis_response('{"documentType": "Legal Notice", "urgencyLevel": "someday"}')

        assert record.document_type == "Legal Notice"
        assert record.document_summary == "Document analyzed successfully"
        assert record.urgency_level == UrgencyLevel.MEDIUM
        assert record.recommended_actions == [
            "Review document contents carefully",
            "Determine if any action is required",
        ]
        assert record.extracted_fields == {}
        assert record.legal_assessment is None

    def test_out_of_range_scores_are_clamped(self):
        record = parse_analysis_response(ai_json(confidenceScores={"plaintiffName": 3}))

        assert record.extracted_fields["plaintiffName"].confidence == 1.0

    def test_shape_mismatch_is_rejected(self):
        assert parse_analysis_response(ai_json(keyPoints={"first": "point"})) is None
        assert parse_analysis_response(ai_json(extractedEntities="none")) is None


class TestPrompt:

    def test_detailed_depth_appends_requirements(self):
        assert build_analysis_prompt("detailed").endswith(DETAILED_ADDITION)
        assert DETAILED_ADDITION not in build_analysis_prompt("standard")


class TestLLMClient:

    @pytest.mark.anyio
    async def test_image_is_sent_as_binary(self):
        backend = FakeBackend(response=ai_json())
        client = LLMClient(backend)
        image = b"\x89PNG\r\n\x1a\nfake image"

        record = await client.analyze_document(make_request(image, "scan.png"))

        assert record is not None
        assert backend.calls[0]["content"] == image
        assert backend.calls[0]["mime_type"] == "image/png"

    @pytest.mark.anyio
    async def test_pdf_with_text_is_sent_as_text(self):
        backend = FakeBackend(response=ai_json())
        pdf = demand_letter_pdf()
        extracted = TextExtractor().extract_pdf_text(pdf)

        await LLMClient(backend).analyze_document(make_request(pdf, "letter.pdf"), extracted)

        call = backend.calls[0]
        assert call["content"] == extracted
        assert call["mime_type"] == "text/plain"
        assert "Document: letter.pdf" in call["prompt"]

    @pytest.mark.anyio
    async def test_pdf_without_text_is_sent_as_binary(self):
        backend = FakeBackend(response=ai_json())
        pdf = make_compressed_pdf()

        await LLMClient(backend).analyze_document(make_request(pdf, "scan.pdf"), "")

        assert backend.calls[0]["content"] == pdf
        assert backend.calls[0]["mime_type"] == "application/pdf"

    @pytest.mark.anyio
    async def test_text_and_options_are_forwarded(self):
        backend = FakeBackend(response=ai_json())
        request = make_request(DEMAND_LETTER.encode(), "letter.txt",
                               model_preference="pro", analysis_depth="detailed")

        await LLMClient(backend).analyze_document(request)

        call = backend.calls[0]
        assert call["content"].startswith("DEMAND LETTER")
        assert call["model_tier"] == "pro"
        assert DETAILED_ADDITION in call["prompt"]

    @pytest.mark.anyio
    async def test_backend_error_returns_none(self):
        client = LLMClient(FakeBackend(error=RuntimeError("quota exceeded")))

        assert await client.analyze_document(make_request(b"hello", "a.txt")) is None

    @pytest.mark.anyio
    async def test_timeout_returns_none(self):
        client = LLMClient(FakeBackend(response=ai_json(), delay=1.0), timeout=0.05)

        assert await client.analyze_document(make_request(b"hello", "a.txt")) is None

    @pytest.mark.anyio
    async def test_unparseable_response_returns_none(self):
        client = LLMClient(FakeBackend(response="I could not read this document."))

        assert await client.analyze_document(make_request(b"hello", "a.txt")) is None

    def test_model_names(self):
        client = LLMClient(FakeBackend())

        assert client.model_name("flash") == "fake-fast"
        assert client.model_name("pro") == "fake-thorough"
