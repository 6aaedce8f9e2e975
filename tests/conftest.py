"""
Shared test fixtures: fake AI backend, sample documents, PDF builders and an API client.
"""

import asyncio
import base64
import json
import zlib
from datetime import date

import pytest
from httpx import AsyncClient, ASGITransport

from intake_analyzer.api import app, get_analyzer
from intake_analyzer.llm_client import AIBackend

TODAY = date(2026, 3, 2)

DEMAND_LETTER = """
DEMAND LETTER - AMERICANS WITH DISABILITIES ACT

Plaintiff: John Smith
Attorney: Jane Doe, of Doe Legal PLLC

Dear Business Owner,

Our client is legally blind and uses a screen reader. Your website fails to
conform to WCAG 2.1 AA and violates ADA Title III, 42 U.S.C. 12182. Images are
missing alt text and forms lack keyboard navigation.

We demand a settlement payment of $15,000 to resolve this matter. Please
respond within 10 days of the date of this letter.
"""

GENERAL_TEXT = """
Meeting notes from the quarterly planning session. The team discussed the new
office layout, the upcoming holiday schedule and the recycling program.
Everyone agreed to circulate the draft floor plan by next week.
"""

AI_RESPONSE = {
    "documentType": "Legal Demand Letter",
    "documentSummary": "A demand letter alleging website accessibility violations.",
    "plaintiffName": "John Smith",
    "attorneyName": "Jane Doe",
    "attorneyFirm": "Doe Legal PLLC",
    "caseNumber": None,
    "responseDeadline": "2026-03-12",
    "settlementAmount": 15000,
    "violationsCited": ["WCAG 2.1 AA", "ADA Title III"],
    "urgencyLevel": "high",
    "keyPoints": ["Demand for $15,000", "Response due in 10 days"],
    "recommendedActions": ["Contact counsel", "Audit the website"],
    "additionalResources": ["ADA.gov"],
    "confidenceScores": {"plaintiffName": 0.95, "attorneyName": 0.9, "documentType": 0.99},
    "extractedEntities": {
        "persons": ["John Smith", "Jane Doe", "John Smith"],
        "organizations": ["Doe Legal PLLC"],
        "dates": [],
        "amounts": ["$15,000"],
        "legalCitations": ["ADA Title III"],
    },
    "legalAnalysis": {
        "claimType": "ADA Website Accessibility",
        "potentialDefenses": ["Remediation in progress"],
        "riskAssessment": "High risk given the short deadline.",
    },
}


class FakeBackend(AIBackend):
    """Scripted stand-in for the external AI capability"""

    models = {"flash": "fake-fast", "pro": "fake-thorough"}

    def __init__(self, response=None, error=None, delay=0.0, gate=None):
        self.response = response
        self.error = error
        self.delay = delay
        self.gate = gate
        self.calls = []

    async def analyze(self, content, mime_type, prompt, model_tier):
        self.calls.append({
            "content": content,
            "mime_type": mime_type,
            "prompt": prompt,
            "model_tier": model_tier,
        })
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


def ai_json(**overrides) -> str:
    payload = dict(AI_RESPONSE)
    payload.update(overrides)
    return "Here is the analysis:\n```json\n" + json.dumps(payload) + "\n```"


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(lines) -> bytes:
    """Minimal single-page PDF with an uncompressed content stream"""
    ops = " ".join(f"({_escape(line)}) Tj T*" for line in lines)
    content = f"BT /F1 12 Tf 72 720 Td {ops} ET".encode("latin-1")
    return (
        b"%PDF-1.4\n"
        b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
        b"4 0 obj\n<< /Length " + str(len(content)).encode() + b" >>\nstream\n"
        + content
        + b"\nendstream\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"
    )


def make_compressed_pdf() -> bytes:
    """PDF whose only content stream is Flate-encoded"""
    content = zlib.compress(b"BT /F1 12 Tf 72 720 Td (Scanned) Tj ET")
    return (
        b"%PDF-1.4\n"
        b"4 0 obj\n<< /Length " + str(len(content)).encode() + b" /Filter /FlateDecode >>\nstream\n"
        + content
        + b"\nendstream\nendobj\n%%EOF\n"
    )


def demand_letter_pdf() -> bytes:
    return make_pdf([line for line in DEMAND_LETTER.splitlines() if line.strip()])


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_client():
    """Build an API client whose analyzer dependency is replaced."""
    def _make(analyzer):
        app.dependency_overrides[get_analyzer] = lambda: analyzer
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    yield _make
    app.dependency_overrides.clear()
