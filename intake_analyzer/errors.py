"""User-visible error taxonomy for document analysis"""
from typing import Dict, Optional


class AnalysisError(Exception):
    """Base class for errors the API reports to the caller"""

    error_type = "INTERNAL_ERROR"
    status_code = 500
    retryable = False

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def to_payload(self) -> Dict:
        payload = {"error": self.message, "errorType": self.error_type}
        if self.retryable:
            payload["retryable"] = True
        if self.hint:
            payload["hint"] = self.hint
        return payload


class ValidationFailedError(AnalysisError):
    """Malformed or missing request input"""

    error_type = "VALIDATION_ERROR"
    status_code = 400


class AINotConfiguredError(AnalysisError):
    """The content type needs the LLM and no API key is configured"""

    error_type = "AI_NOT_CONFIGURED"
    status_code = 503


class AIAnalysisFailedError(AnalysisError):
    """The LLM was attempted, failed, and no fallback tier could serve the request"""

    error_type = "AI_ANALYSIS_FAILED"
    status_code = 500
    retryable = True


class InternalAnalysisError(AnalysisError):
    error_type = "INTERNAL_ERROR"
    status_code = 500
    retryable = True
