"""Legal document intake analysis: PDF/text/image in, structured analysis record out"""
from .analyzer import DocumentAnalyzer, AnalysisOutcome
from .composer import compose_analysis
from .models import AnalysisRecord, AnalysisRequest

__all__ = [
    "DocumentAnalyzer",
    "AnalysisOutcome",
    "AnalysisRecord",
    "AnalysisRequest",
    "compose_analysis",
]
