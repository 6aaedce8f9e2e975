"""Persistence of finished analyses (one insert per request)"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from .config import (
    LETTERS_TABLE,
    MAX_PROMPT_CHARS,
    PERSIST_TIMEOUT_SECONDS,
    SUPABASE_SERVICE_ROLE_KEY,
    SUPABASE_URL,
)
from .models import AnalysisRecord, AnalysisRequest, ContentKind

logger = logging.getLogger(__name__)

IMAGE_TEXT_NOTE = "Image document - text extracted by AI"


def build_letter_row(record: AnalysisRecord,
                     request: AnalysisRequest,
                     extracted_text: str = "") -> Dict[str, Any]:
    """Map an analysis onto the demand_letters columns"""
    transport_size = request.transport_size or 0
    if request.content_kind == ContentKind.IMAGE:
        stored_text = IMAGE_TEXT_NOTE
    else:
        stored_text = extracted_text[:MAX_PROMPT_CHARS]

    diagnostics = record.diagnostics
    violations = record.violations_cited
    return {
        "business_id": request.business_id or None,
        "user_id": request.user_id or None,
        "file_name": request.file_name,
        "file_size": round(transport_size * 0.75) if transport_size else len(request.file_bytes),
        "upload_date": datetime.now(timezone.utc).isoformat(),
        "plaintiff_name": record.field_value("plaintiffName"),
        "attorney_name": record.field_value("attorneyName"),
        "attorney_firm": record.field_value("attorneyFirm"),
        "response_deadline": record.field_value("responseDeadline"),
        "settlement_amount": record.field_value("settlementAmount"),
        "violations_cited": {"items": violations} if violations else None,
        "extracted_text": stored_text,
        "analysis_summary": record.document_summary,
        "risk_level": record.urgency_level.value,
        "status": "pending",
        "confidence_scores": record.confidence_scores,
        "extracted_entities": record.entities.model_dump(by_alias=True),
        "ai_model_version": diagnostics.model_used if diagnostics else None,
        "processing_status": "completed",
    }


class LetterStore(ABC):
    """Externally owned record store; the analyzer only ever inserts"""

    @abstractmethod
    async def insert(self, row: Dict[str, Any]) -> Optional[str]:
        """Insert one row and return its id, or None if the store assigned none"""


class InMemoryLetterStore(LetterStore):
    def __init__(self):
        self.rows: List[Dict[str, Any]] = []

    async def insert(self, row: Dict[str, Any]) -> Optional[str]:
        letter_id = f"letter-{len(self.rows) + 1}"
        self.rows.append({"id": letter_id, **row})
        return letter_id


class SupabaseLetterStore(LetterStore):
    """Inserts through the Supabase PostgREST endpoint"""

    def __init__(self,
                 supabase_url: Optional[str] = SUPABASE_URL,
                 service_key: Optional[str] = SUPABASE_SERVICE_ROLE_KEY,
                 table: str = LETTERS_TABLE,
                 timeout: float = PERSIST_TIMEOUT_SECONDS,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if not supabase_url or not service_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        self.endpoint = f"{supabase_url.rstrip('/')}/rest/v1/{table}"
        self.headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }
        self.timeout = timeout
        self.transport = transport

    async def insert(self, row: Dict[str, Any]) -> Optional[str]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.endpoint, headers=self.headers, json=row)
        response.raise_for_status()

        payload = response.json()
        if isinstance(payload, list):
            payload = payload[0] if payload else {}
        letter_id = payload.get("id")
        if letter_id is None:
            logger.warning("Insert into %s returned no id", self.endpoint)
            return None
        return str(letter_id)
