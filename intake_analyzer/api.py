"""FastAPI interface for document analysis"""
import asyncio
import base64
import binascii
import contextlib
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ValidationError

from .analyzer import AnalysisOutcome, DocumentAnalyzer
from .config import ai_configured, persistence_configured
from .errors import AnalysisError, InternalAnalysisError, ValidationFailedError
from .llm_client import LLMClient, OpenAIBackend
from .models import AnalysisRequest
from .store import SupabaseLetterStore

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}
CLIENT_CLOSED_REQUEST = 499
DISCONNECT_POLL_SECONDS = 0.25

app = FastAPI(title="Document Intake Analyzer API", version="1.0.0")


class AnalyzeDocumentBody(BaseModel):
    """JSON body of an analysis request (file content is base64)"""
    fileContent: Optional[str] = None
    fileName: Optional[str] = None
    fileType: Optional[str] = None
    modelPreference: str = "flash"
    analysisDepth: str = "standard"
    business_id: Optional[str] = None
    user_id: Optional[str] = None


class ClientDisconnected(Exception):
    pass


@lru_cache()
def get_analyzer() -> DocumentAnalyzer:
    """Analyzer wired from environment configuration"""
    llm_client = LLMClient(OpenAIBackend()) if ai_configured() else None
    store = SupabaseLetterStore() if persistence_configured() else None
    if llm_client is None:
        logger.warning("OPENAI_API_KEY not configured, images and image-based PDFs cannot be analyzed")
    if store is None:
        logger.warning("Supabase not configured, analyses will not be persisted")
    return DocumentAnalyzer(llm_client=llm_client, store=store)


def _json(content, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    return _json(exc.to_payload(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _json(ValidationFailedError("Request body must be a JSON object").to_payload(), status_code=400)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Analysis error")
    return _json(InternalAnalysisError(str(exc) or "Internal server error").to_payload(), status_code=500)


def build_request(file_bytes: bytes, file_name: Optional[str], file_type: Optional[str],
                  model_preference: str, analysis_depth: str,
                  business_id: Optional[str], user_id: Optional[str],
                  transport_size: Optional[int] = None) -> AnalysisRequest:
    try:
        return AnalysisRequest(
            file_bytes=file_bytes,
            file_name=file_name or "",
            declared_mime_type=file_type or "",
            model_preference=model_preference or "flash",
            analysis_depth=analysis_depth or "standard",
            business_id=business_id,
            user_id=user_id,
            transport_size=transport_size,
        )
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ValidationFailedError(f"Invalid analysis request: {messages}")


async def run_until_disconnected(request: Request, coro):
    """Await the analysis, cancelling it if the client goes away first"""
    task = asyncio.ensure_future(coro)
    while True:
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
        if done:
            return task.result()
        if await request.is_disconnected():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            raise ClientDisconnected()


async def _respond(http_request: Request, analyzer: DocumentAnalyzer, analysis_request: AnalysisRequest):
    try:
        outcome: AnalysisOutcome = await run_until_disconnected(http_request, analyzer.analyze(analysis_request))
    except ClientDisconnected:
        logger.info("Client disconnected during analysis of %s", analysis_request.file_name)
        return Response(status_code=CLIENT_CLOSED_REQUEST, headers=CORS_HEADERS)

    record = outcome.record
    return _json({
        "success": True,
        "letter_id": outcome.letter_id,
        "analysis": record.model_dump(mode="json", by_alias=True, exclude={"diagnostics"}),
        "debug": record.diagnostics.model_dump(mode="json", by_alias=True),
    })


@app.options("/analyze-document")
async def analyze_document_preflight():
    """CORS preflight"""
    return Response(status_code=200, headers=CORS_HEADERS)


@app.post("/analyze-document")
async def analyze_document(body: AnalyzeDocumentBody,
                           http_request: Request,
                           analyzer: DocumentAnalyzer = Depends(get_analyzer)):
    """
    Analyze a base64-encoded document.

    Accepts fileContent (base64), fileName, fileType (MIME), modelPreference
    (flash|pro), analysisDepth (standard|detailed), business_id and user_id.

    Returns the analysis record plus a debug block naming the tier that served it.
    """
    if not body.fileContent or not body.fileName:
        raise ValidationFailedError("File content and file name are required")

    try:
        file_bytes = base64.b64decode(body.fileContent)
    except (binascii.Error, ValueError):
        raise ValidationFailedError("fileContent must be base64-encoded")

    analysis_request = build_request(
        file_bytes, body.fileName, body.fileType, body.modelPreference, body.analysisDepth,
        body.business_id, body.user_id, transport_size=len(body.fileContent),
    )
    return await _respond(http_request, analyzer, analysis_request)


@app.post("/analyze-document/upload")
async def analyze_document_upload(http_request: Request,
                                  file: UploadFile = File(...),
                                  modelPreference: str = Form("flash"),
                                  analysisDepth: str = Form("standard"),
                                  business_id: Optional[str] = Form(None),
                                  user_id: Optional[str] = Form(None),
                                  analyzer: DocumentAnalyzer = Depends(get_analyzer)):
    """Analyze a document sent as a multipart upload instead of base64 JSON"""
    file_bytes = await file.read()
    if not file_bytes:
        raise ValidationFailedError("Uploaded file is empty")

    # Generic binary type says nothing; let the file name decide
    file_type = file.content_type if file.content_type != "application/octet-stream" else None
    analysis_request = build_request(
        file_bytes, file.filename, file_type, modelPreference, analysisDepth,
        business_id, user_id,
    )
    return await _respond(http_request, analyzer, analysis_request)


@app.get("/health")
async def health_check(analyzer: DocumentAnalyzer = Depends(get_analyzer)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "ai_configured": analyzer.has_ai_configured,
        "persistence_configured": analyzer.store is not None,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
