"""Analysis orchestrator: AI-first with deterministic fallback and error taxonomy"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from .composer import compose_analysis
from .config import MIN_EXTRACTED_TEXT_LENGTH, PERSIST_TIMEOUT_SECONDS, REGEX_MODEL_ID
from .errors import AIAnalysisFailedError, AINotConfiguredError, AnalysisError, InternalAnalysisError
from .llm_client import LLMClient
from .models import AnalysisRecord, AnalysisRequest, ContentKind, Diagnostics
from .store import LetterStore, build_letter_row
from .text_extractor import TextExtractor

logger = logging.getLogger(__name__)

METHOD_AI_VISION = "ai-vision"
METHOD_AI_PDF = "ai-pdf"
METHOD_AI_TEXT = "ai-text"
METHOD_REGEX_PDF = "regex-pdf"
METHOD_REGEX = "regex"


class AnalysisState(str, Enum):
    RECEIVED = "received"
    CLASSIFYING = "classifying"
    AI_ATTEMPT = "ai_attempt"
    REGEX_ONLY = "regex_only"
    COMPOSING = "composing"
    PERSISTING = "persisting"
    RESPONDED = "responded"
    FAILED = "failed"


@dataclass
class AnalysisOutcome:
    letter_id: Optional[str]
    record: AnalysisRecord


# (record, analysis method, text kept with the stored record)
PathResult = Tuple[AnalysisRecord, str, str]


class DocumentAnalyzer:
    """Runs one request through the degradation tiers for its content type.

    Holds only read-only collaborators, so one instance can serve concurrent
    requests. ``llm_client`` is None when no AI key is configured.
    """

    def __init__(self,
                 llm_client: Optional[LLMClient] = None,
                 store: Optional[LetterStore] = None,
                 persist_timeout: float = PERSIST_TIMEOUT_SECONDS):
        self.llm_client = llm_client
        self.store = store
        self.persist_timeout = persist_timeout
        self.text_extractor = TextExtractor()

    @property
    def has_ai_configured(self) -> bool:
        return self.llm_client is not None

    def _transition(self, request: AnalysisRequest, state: AnalysisState, detail: str = "") -> None:
        logger.debug("[%s] %s %s", request.file_name, state.value, detail)

    async def analyze(self, request: AnalysisRequest, today: Optional[date] = None) -> AnalysisOutcome:
        """
        Analyze one uploaded document

        Args:
            request: Decoded upload
            today: Reference date for the deterministic path (defaults to today)

        Returns:
            AnalysisOutcome with the record (diagnostics attached) and the
            stored letter id, which is None when persistence was skipped or failed

        Raises:
            AINotConfiguredError, AIAnalysisFailedError, InternalAnalysisError
        """
        self._transition(request, AnalysisState.RECEIVED)
        logger.info("Processing %s (%s), AI configured: %s, model preference: %s, depth: %s",
                    request.file_name, request.mime_type, self.has_ai_configured,
                    request.model_preference, request.analysis_depth)
        try:
            self._transition(request, AnalysisState.CLASSIFYING)
            kind = request.content_kind
            if kind == ContentKind.IMAGE:
                record, method, stored_text = await self._analyze_image(request)
            elif kind == ContentKind.PDF:
                record, method, stored_text = await self._analyze_pdf(request, today)
            else:
                record, method, stored_text = await self._analyze_text(request, today)
        except AnalysisError as e:
            self._transition(request, AnalysisState.FAILED, e.error_type)
            logger.warning("Analysis of %s failed: %s (%s)", request.file_name, e.message, e.error_type)
            raise
        except Exception as e:
            self._transition(request, AnalysisState.FAILED, "INTERNAL_ERROR")
            logger.exception("Unexpected error analyzing %s", request.file_name)
            raise InternalAnalysisError(str(e) or "Internal server error") from e

        model_used = REGEX_MODEL_ID
        if method.startswith("ai-"):
            model_used = self.llm_client.model_name(request.model_preference)

        record = record.model_copy(update={"diagnostics": Diagnostics(
            analysis_method=method,
            model_used=model_used,
            has_ai_configured=self.has_ai_configured,
            file_type=request.mime_type,
            model_preference=request.model_preference,
            analysis_depth=request.analysis_depth,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )})

        self._transition(request, AnalysisState.PERSISTING)
        letter_id = await self._persist(record, request, stored_text)

        self._transition(request, AnalysisState.RESPONDED, method)
        logger.info("Analysis of %s completed via %s (%s)", request.file_name, method, model_used)
        return AnalysisOutcome(letter_id=letter_id, record=record)

    async def _attempt_ai(self, request: AnalysisRequest,
                          extracted_text: Optional[str] = None) -> Optional[AnalysisRecord]:
        """AI result or None; never raced against the regex path"""
        self._transition(request, AnalysisState.AI_ATTEMPT)
        try:
            return await self.llm_client.analyze_document(request, extracted_text)
        except asyncio.CancelledError:
            logger.info("Analysis of %s cancelled before the AI call settled", request.file_name)
            raise

    def _compose(self, request: AnalysisRequest, text: str, today: Optional[date]) -> AnalysisRecord:
        self._transition(request, AnalysisState.COMPOSING)
        return compose_analysis(text, request.file_name, today)

    async def _analyze_image(self, request: AnalysisRequest) -> PathResult:
        if not self.has_ai_configured:
            raise AINotConfiguredError(
                "Image analysis requires AI configuration. Please contact your administrator to enable this feature.",
                hint="Upload a text-based PDF or a plain-text copy of the document instead.",
            )

        record = await self._attempt_ai(request)
        if record is None:
            raise AIAnalysisFailedError(
                "Image analysis failed. The AI service may be unavailable. Please try again.",
                hint="Check that the OpenAI API key is valid and has access to vision-capable models.",
            )
        return record, METHOD_AI_VISION, ""

    async def _analyze_pdf(self, request: AnalysisRequest, today: Optional[date]) -> PathResult:
        extracted_text = self.text_extractor.extract_pdf_text(request.file_bytes)

        if self.has_ai_configured:
            record = await self._attempt_ai(request, extracted_text)
            if record is not None:
                return record, METHOD_AI_PDF, extracted_text
            logger.warning("AI analysis failed for %s, trying extracted PDF text", request.file_name)
        else:
            self._transition(request, AnalysisState.REGEX_ONLY)

        if len(extracted_text) >= MIN_EXTRACTED_TEXT_LENGTH:
            logger.info("Using regex analysis for PDF text of %s", request.file_name)
            return self._compose(request, extracted_text, today), METHOD_REGEX_PDF, extracted_text

        if self.has_ai_configured:
            raise AIAnalysisFailedError(
                "PDF analysis failed. The PDF may be image-based or encrypted.",
                hint="Try converting the PDF to an image (PNG/JPG) for better results, "
                     "or ensure the PDF contains searchable text.",
            )
        raise AINotConfiguredError(
            "PDF analysis requires AI configuration for image-based PDFs. "
            "Please contact your administrator or convert the PDF to an image.",
            hint="Text could not be recovered from this PDF without AI; upload a searchable PDF instead.",
        )

    async def _analyze_text(self, request: AnalysisRequest, today: Optional[date]) -> PathResult:
        text = self.text_extractor.decode_plain_text(request.file_bytes)

        if self.has_ai_configured:
            record = await self._attempt_ai(request)
            if record is not None:
                return record, METHOD_AI_TEXT, text
            logger.info("AI unavailable for %s, using regex analysis", request.file_name)
        else:
            self._transition(request, AnalysisState.REGEX_ONLY)

        return self._compose(request, text, today), METHOD_REGEX, text

    async def _persist(self, record: AnalysisRecord, request: AnalysisRequest, stored_text: str) -> Optional[str]:
        """Insert once; failures are logged and never fail the request"""
        if self.store is None:
            logger.info("No record store configured, skipping persistence of %s", request.file_name)
            return None

        row = build_letter_row(record, request, stored_text)
        try:
            return await asyncio.wait_for(self.store.insert(row), timeout=self.persist_timeout)
        except asyncio.TimeoutError:
            logger.error("Saving analysis of %s timed out after %.0fs", request.file_name, self.persist_timeout)
        except Exception:
            logger.exception("Error saving analysis of %s", request.file_name)
        return None
