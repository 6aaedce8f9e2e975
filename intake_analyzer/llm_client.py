"""LLM client for AI-first document analysis"""
import asyncio
import base64
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .config import (
    AI_DEFAULT_CONFIDENCE,
    AI_TIMEOUT_SECONDS,
    LLM_MODELS,
    MAX_PROMPT_CHARS,
    MIN_EXTRACTED_TEXT_LENGTH,
    OPENAI_API_KEY,
    ai_configured,
)
from .models import (
    AnalysisRecord,
    AnalysisRequest,
    ContentKind,
    EntityBag,
    ExtractedField,
    LegalAssessment,
    Provenance,
    UrgencyLevel,
)
from .text_extractor import TextExtractor

logger = logging.getLogger(__name__)

JSON_OBJECT_RE = re.compile(r'\{[\s\S]*\}')

SYSTEM_PROMPT = "You are a precise legal document analysis assistant. Return only valid JSON."

BASE_PROMPT = """You are an expert legal document analyzer specializing in ADA compliance, accessibility law, and demand letter analysis. Your role is to provide accurate, actionable insights for legal professionals and business owners.

ANALYSIS INSTRUCTIONS:
1. Carefully read and analyze every part of the document
2. Extract ALL relevant information with high precision
3. Identify legal implications and time-sensitive matters
4. Provide confidence scores based on clarity of information in the document
5. Focus on accessibility-related legal matters (ADA, WCAG, Section 508)

OUTPUT FORMAT - Return ONLY valid JSON with this exact structure:
{
  "documentType": "string (Legal Demand Letter, Settlement Offer, Court Filing, Cease and Desist, Legal Notice, Complaint, etc.)",
  "documentSummary": "string (3-4 sentence overview including key parties, claims, and required actions)",
  "plaintiffName": "string or null",
  "attorneyName": "string or null",
  "attorneyFirm": "string or null",
  "caseNumber": "string or null",
  "courtName": "string or null",
  "filingDate": "string or null (YYYY-MM-DD)",
  "responseDeadline": "string or null (YYYY-MM-DD, calculate from document date if given as 'within X days')",
  "settlementAmount": "number or null (no currency symbols)",
  "violationsCited": ["specific violations cited (WCAG 2.1 AA, ADA Title III, Section 508, etc.)"],
  "urgencyLevel": "critical|high|medium|low (based on deadline proximity and claim severity)",
  "keyPoints": ["4-8 most important findings"],
  "recommendedActions": ["4-6 prioritized action items with timeframes"],
  "additionalResources": ["relevant resources (ADA.gov, W3C WCAG, legal aid, etc.)"],
  "confidenceScores": {
    "plaintiffName": 0.0-1.0,
    "attorneyName": 0.0-1.0,
    "attorneyFirm": 0.0-1.0,
    "caseNumber": 0.0-1.0,
    "courtName": 0.0-1.0,
    "filingDate": 0.0-1.0,
    "responseDeadline": 0.0-1.0,
    "settlementAmount": 0.0-1.0
  },
  "extractedEntities": {
    "persons": ["all person names found"],
    "organizations": ["all organization/company names"],
    "dates": ["all dates mentioned in original format"],
    "amounts": ["all monetary amounts mentioned"],
    "legalCitations": ["all legal citations, statutes, and case references"]
  },
  "legalAnalysis": {
    "claimType": "string (ADA Website Accessibility, Physical Accessibility, Employment ADA, etc.)",
    "jurisdiction": "string or null",
    "statuteOfLimitations": "string or null",
    "potentialDefenses": ["potential legal defenses to consider"],
    "riskAssessment": "string (1-2 sentence assessment of legal risk level and reasoning)"
  }
}"""

DETAILED_ADDITION = """

DETAILED ANALYSIS REQUIREMENTS:
- Analyze legal language for potential ambiguities or weaknesses
- Identify all specific WCAG success criteria mentioned or implied
- Note any procedural defects in the demand
- Assess credibility markers in the document
- Flag any unusual or aggressive language patterns
- Compare demands against typical settlement ranges
- Identify serial litigant indicators if present"""


def build_analysis_prompt(analysis_depth: str = "standard") -> str:
    """Fixed JSON-schema prompt; detailed depth appends extra review requirements"""
    if analysis_depth == "detailed":
        return BASE_PROMPT + DETAILED_ADDITION
    return BASE_PROMPT


class AIBackend(ABC):
    """External generative-AI capability: content + prompt in, raw response text out.

    Implementations raise on any failure; LLMClient turns failures into None.
    """

    models: Dict[str, str] = LLM_MODELS

    def model_for(self, model_tier: str) -> str:
        return self.models.get(model_tier, self.models["flash"])

    @abstractmethod
    async def analyze(self,
                      content: Union[bytes, str],
                      mime_type: str,
                      prompt: str,
                      model_tier: str) -> str:
        """Raw response text for one document"""


class OpenAIBackend(AIBackend):
    """Client for OpenAI chat completions (vision-capable models)"""

    def __init__(self, api_key: Optional[str] = OPENAI_API_KEY, models: Optional[Dict[str, str]] = None):
        if not ai_configured(api_key):
            raise ValueError("OPENAI_API_KEY not set in environment variables")
        self.client = AsyncOpenAI(api_key=api_key, timeout=AI_TIMEOUT_SECONDS, max_retries=0)
        self.models = models or LLM_MODELS

    def _user_content(self, content: Union[bytes, str], mime_type: str, prompt: str):
        if isinstance(content, str):
            return f"{prompt}{content}"

        encoded = base64.b64encode(content).decode("ascii")
        data_uri = f"data:{mime_type};base64,{encoded}"
        if mime_type.startswith("image/"):
            binary_part = {"type": "image_url", "image_url": {"url": data_uri}}
        else:
            binary_part = {"type": "file", "file": {"filename": "document.pdf", "file_data": data_uri}}
        return [{"type": "text", "text": prompt}, binary_part]

    async def analyze(self,
                      content: Union[bytes, str],
                      mime_type: str,
                      prompt: str,
                      model_tier: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model_for(model_tier),
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self._user_content(content, mime_type, prompt)},
            ],
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""


def _blank_to_none(v):
    if v is None:
        return None
    if isinstance(v, (dict, list)):
        return v
    text = str(v).strip()
    return text or None


def _as_text_list(v) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [v] if v.strip() else []
    if isinstance(v, (list, tuple)):
        return [str(item).strip() for item in v if item is not None and str(item).strip()]
    return v  # Let validation reject dicts and other shapes


class LegalAnalysisPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    claim_type: Optional[str] = None
    jurisdiction: Optional[str] = None
    statute_of_limitations: Optional[str] = None
    potential_defenses: List[str] = []
    risk_assessment: Optional[str] = None

    @field_validator("claim_type", "jurisdiction", "statute_of_limitations", "risk_assessment", mode="before")
    @classmethod
    def scalar_text(cls, v):
        return _blank_to_none(v)

    @field_validator("potential_defenses", mode="before")
    @classmethod
    def text_list(cls, v):
        return _as_text_list(v)


class AIAnalysisPayload(BaseModel):
    """Schema for the LLM's JSON answer; every field has an explicit default"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    document_type: Optional[str] = None
    document_summary: Optional[str] = None
    plaintiff_name: Optional[str] = None
    attorney_name: Optional[str] = None
    attorney_firm: Optional[str] = None
    case_number: Optional[str] = None
    court_name: Optional[str] = None
    filing_date: Optional[str] = None
    response_deadline: Optional[str] = None
    settlement_amount: Optional[float] = None
    violations_cited: List[str] = []
    urgency_level: Optional[str] = None
    key_points: List[str] = []
    recommended_actions: List[str] = []
    additional_resources: List[str] = []
    confidence_scores: Dict[str, float] = {}
    extracted_entities: EntityBag = Field(default_factory=EntityBag)
    legal_analysis: Optional[LegalAnalysisPayload] = None

    @field_validator("document_type", "document_summary", "plaintiff_name", "attorney_name",
                     "attorney_firm", "case_number", "court_name", "filing_date",
                     "response_deadline", "urgency_level", mode="before")
    @classmethod
    def scalar_text(cls, v):
        return _blank_to_none(v)

    @field_validator("violations_cited", "key_points", "recommended_actions",
                     "additional_resources", mode="before")
    @classmethod
    def text_list(cls, v):
        return _as_text_list(v)

    @field_validator("settlement_amount", mode="before")
    @classmethod
    def parse_amount(cls, v):
        if v is None or isinstance(v, (int, float)):
            return v
        cleaned = re.sub(r'[^\d.]', '', str(v))
        try:
            return float(cleaned) if cleaned else None
        except ValueError:
            return None

    @field_validator("confidence_scores", mode="before")
    @classmethod
    def numeric_scores(cls, v):
        if not isinstance(v, dict):
            return {}
        scores = {}
        for key, score in v.items():
            try:
                scores[str(key)] = float(score)
            except (TypeError, ValueError):
                continue
        return scores

    @field_validator("extracted_entities", mode="before")
    @classmethod
    def entities_or_empty(cls, v):
        return v if v is not None else {}

    def field_values(self) -> Dict[str, Any]:
        amount = self.settlement_amount
        if amount is not None and float(amount).is_integer():
            amount = int(amount)
        return {
            "plaintiffName": self.plaintiff_name,
            "attorneyName": self.attorney_name,
            "attorneyFirm": self.attorney_firm,
            "caseNumber": self.case_number,
            "courtName": self.court_name,
            "filingDate": self.filing_date,
            "responseDeadline": self.response_deadline,
            "settlementAmount": amount or None,
        }

    def to_record(self) -> AnalysisRecord:
        """Normalize into an AnalysisRecord with AI provenance and per-field defaults"""
        fields = {}
        for name, value in self.field_values().items():
            if value is None:
                continue
            fields[name] = ExtractedField(
                value=value,
                confidence=self.confidence_scores.get(name, AI_DEFAULT_CONFIDENCE),
                provenance=Provenance.AI,
            )

        try:
            urgency = UrgencyLevel((self.urgency_level or "medium").lower())
        except ValueError:
            urgency = UrgencyLevel.MEDIUM

        legal = None
        if self.legal_analysis is not None:
            legal = LegalAssessment(
                claim_type=self.legal_analysis.claim_type or "Unknown",
                jurisdiction=self.legal_analysis.jurisdiction,
                statute_of_limitations=self.legal_analysis.statute_of_limitations,
                potential_defenses=self.legal_analysis.potential_defenses,
                risk_assessment=self.legal_analysis.risk_assessment or "Risk assessment not available",
            )

        return AnalysisRecord(
            document_type=self.document_type or "General Document",
            document_summary=self.document_summary or "Document analyzed successfully",
            key_points=self.key_points,
            recommended_actions=self.recommended_actions or [
                "Review document contents carefully",
                "Determine if any action is required",
            ],
            urgency_level=urgency,
            additional_resources=self.additional_resources or [
                "Help Center",
                "Professional Resources Directory",
            ],
            extracted_fields=fields,
            violations_cited=list(dict.fromkeys(self.violations_cited)),
            entities=self.extracted_entities,
            legal_assessment=legal,
        )


def extract_json_object(raw_text: str) -> Optional[Dict]:
    """First brace-delimited JSON object in a response that may wrap it in prose or fences"""
    match = JSON_OBJECT_RE.search(raw_text or "")
    if not match:
        return None
    candidate = match.group(0)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        # Greedy match may span two objects or trailing prose; take the first complete one
        try:
            parsed, _ = json.JSONDecoder().raw_decode(candidate)
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def parse_analysis_response(raw_text: str) -> Optional[AnalysisRecord]:
    """Validated AnalysisRecord from raw LLM output, or None on any shape problem"""
    data = extract_json_object(raw_text)
    if data is None:
        logger.error("Could not extract JSON from LLM response: %.500s", raw_text or "")
        return None
    try:
        return AIAnalysisPayload.model_validate(data).to_record()
    except ValidationError as e:
        logger.error("LLM response did not match the analysis schema: %s", e)
        return None


class LLMClient:
    """Adapter between the orchestrator and an AIBackend"""

    def __init__(self, backend: AIBackend, timeout: float = AI_TIMEOUT_SECONDS):
        self.backend = backend
        self.timeout = timeout
        self.text_extractor = TextExtractor()

    def model_name(self, model_preference: str) -> str:
        return self.backend.model_for(model_preference)

    def _build_input(self, request: AnalysisRequest, prompt: str, extracted_text: Optional[str]):
        """(content, mime type, prompt) for vision or text mode"""
        kind = request.content_kind
        if kind == ContentKind.IMAGE:
            logger.info("Analyzing image with vision model")
            return request.file_bytes, request.mime_type, prompt + "\n\nAnalyze the document shown in this image:"

        if kind == ContentKind.PDF:
            if extracted_text and len(extracted_text) >= MIN_EXTRACTED_TEXT_LENGTH:
                logger.info("Analyzing PDF with %d characters of extracted text", len(extracted_text))
                header = f"\n\nDocument: {request.file_name}\nExtracted Text Content:\n"
                return extracted_text[:MAX_PROMPT_CHARS], "text/plain", prompt + header
            logger.info("Sending PDF directly for vision analysis")
            return request.file_bytes, "application/pdf", prompt + "\n\nAnalyze this PDF document:"

        text = self.text_extractor.decode_plain_text(request.file_bytes)
        logger.info("Analyzing text document")
        header = f"\n\nDocument: {request.file_name}\nContent:\n"
        return text[:MAX_PROMPT_CHARS], "text/plain", prompt + header

    async def analyze_document(self,
                               request: AnalysisRequest,
                               extracted_text: Optional[str] = None) -> Optional[AnalysisRecord]:
        """
        Analyze a document with the LLM

        Args:
            request: The upload being analyzed
            extracted_text: Text already recovered from a PDF, if any

        Returns:
            AnalysisRecord with AI provenance, or None when the LLM is
            unavailable, times out, or answers with something unusable
        """
        prompt = build_analysis_prompt(request.analysis_depth)
        content, mime_type, full_prompt = self._build_input(request, prompt, extracted_text)
        logger.info("Using model %s (depth=%s)", self.model_name(request.model_preference), request.analysis_depth)

        try:
            raw_text = await asyncio.wait_for(
                self.backend.analyze(content, mime_type, full_prompt, request.model_preference),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("LLM analysis timed out after %.0fs", self.timeout)
            return None
        except Exception as e:
            logger.warning("LLM analysis failed: %s", e, exc_info=True)
            return None

        logger.debug("LLM raw response length: %d", len(raw_text or ""))
        return parse_analysis_response(raw_text)
