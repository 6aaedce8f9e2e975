"""Data model shared by the extraction paths, the API and the store"""
import mimetypes
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

class Provenance(str, Enum):
    AI = "ai"
    REGEX = "regex"


class UrgencyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ContentKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    TEXT = "text"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractedField(CamelModel):
    """A single extracted value with its confidence and where it came from"""

    value: Any
    confidence: float = Field(ge=0.0, le=1.0)
    provenance: Provenance

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        return min(1.0, max(0.0, float(v)))


class EntityBag(CamelModel):
    """Generic entities found in a document.

    persons, organizations and legal_citations behave as sets; dates and
    amounts keep the order they were found in. All are deduplicated.
    """

    persons: List[str] = Field(default_factory=list)
    organizations: List[str] = Field(default_factory=list)
    dates: List[str] = Field(default_factory=list)
    amounts: List[str] = Field(default_factory=list)
    legal_citations: List[str] = Field(default_factory=list)

    @field_validator("*", mode="before")
    @classmethod
    def dedupe(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple, set)):
            return v
        return list(dict.fromkeys(str(item) for item in v if item is not None))


class LegalAssessment(CamelModel):
    claim_type: str
    jurisdiction: Optional[str] = None
    statute_of_limitations: Optional[str] = None
    potential_defenses: List[str] = Field(default_factory=list)
    risk_assessment: str


class Diagnostics(CamelModel):
    """Which degradation tier served a request, for audit"""

    analysis_method: str
    model_used: str = Field(alias="aiModel")
    has_ai_configured: bool = Field(alias="hasAIConfigured")
    file_type: str
    model_preference: str = "flash"
    analysis_depth: str = "standard"
    timestamp: str


class AnalysisRecord(CamelModel):
    document_type: str = "General Document"
    document_summary: str = ""
    key_points: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM
    additional_resources: List[str] = Field(default_factory=list)
    extracted_fields: Dict[str, ExtractedField] = Field(default_factory=dict)
    violations_cited: List[str] = Field(default_factory=list)
    entities: EntityBag = Field(default_factory=EntityBag)
    legal_assessment: Optional[LegalAssessment] = None
    diagnostics: Optional[Diagnostics] = None

    @computed_field(alias="confidenceScores")
    @property
    def confidence_scores(self) -> Dict[str, float]:
        return {name: f.confidence for name, f in self.extracted_fields.items()}

    def field_value(self, name: str) -> Any:
        """Value of an extracted field, or None when it was not found"""
        extracted = self.extracted_fields.get(name)
        return extracted.value if extracted is not None else None


class AnalysisRequest(BaseModel):
    """One uploaded document, already decoded from its base64 transport form"""

    model_config = ConfigDict(frozen=True)

    file_bytes: bytes = Field(min_length=1)
    file_name: str = Field(min_length=1)
    declared_mime_type: str = ""
    model_preference: str = "flash"
    analysis_depth: str = "standard"
    business_id: Optional[str] = None
    user_id: Optional[str] = None
    transport_size: Optional[int] = None  # Length of the base64 payload as received

    @field_validator("file_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("file name must not be blank")
        return v.strip()

    @field_validator("model_preference")
    @classmethod
    def check_model_preference(cls, v: str) -> str:
        if v not in ("flash", "pro"):
            raise ValueError("modelPreference must be 'flash' or 'pro'")
        return v

    @field_validator("analysis_depth")
    @classmethod
    def check_analysis_depth(cls, v: str) -> str:
        if v not in ("standard", "detailed"):
            raise ValueError("analysisDepth must be 'standard' or 'detailed'")
        return v

    @property
    def mime_type(self) -> str:
        """Declared MIME type, guessed from the file name when none was sent"""
        if self.declared_mime_type:
            return self.declared_mime_type
        guessed, _ = mimetypes.guess_type(self.file_name)
        return guessed or "text/plain"

    @property
    def content_kind(self) -> ContentKind:
        mime = self.mime_type.lower()
        if mime.startswith("image/"):
            return ContentKind.IMAGE
        if mime == "application/pdf":
            return ContentKind.PDF
        return ContentKind.TEXT
