from fastapi import APIRouter, File, Request, UploadFile, status
from fastapi.responses import JSONResponse

from app.core.analysis_sessions import get_analysis_session
from app.core.config import settings
from app.core.errors import (
    AnalyzerError,
    Cancelled,
    EmptyExtractedText,
    EmptyResponse,
    EndpointMisconfigured,
    ExtractionFailed,
    FileTooLarge,
    InvalidJson,
    MissingInput,
    TransportError,
    UnsupportedFormat,
)
from app.core.rate_limit import rate_limit
from app.parsing.extract import extract_text_async
from app.schemas.analysis import AnalysisResult, AnalyzeRequest, ErrorResponse, ExtractTextResponse
from app.services.analysis_client import AnalysisClient

router = APIRouter()

UPLOAD_CHUNK_BYTES = 64 * 1024

_ERROR_STATUS: dict[type[AnalyzerError], int] = {
    UnsupportedFormat: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    EmptyExtractedText: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ExtractionFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FileTooLarge: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    MissingInput: status.HTTP_400_BAD_REQUEST,
    Cancelled: status.HTTP_409_CONFLICT,
    TransportError: status.HTTP_502_BAD_GATEWAY,
    EndpointMisconfigured: status.HTTP_502_BAD_GATEWAY,
    EmptyResponse: status.HTTP_502_BAD_GATEWAY,
    InvalidJson: status.HTTP_502_BAD_GATEWAY,
}


def _error_response(exc: AnalyzerError) -> JSONResponse:
    status_code = _ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = ErrorResponse(code=exc.code, detail=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _analysis_client(request: Request) -> AnalysisClient:
    client = getattr(request.app.state, "analysis_client", None)
    if client is None:
        client = AnalysisClient()
        request.app.state.analysis_client = client
    return client


async def _read_upload(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise FileTooLarge(settings.max_upload_bytes)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post(
    "/extract-text",
    response_model=ExtractTextResponse,
    responses={413: {"model": ErrorResponse}, 415: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
@rate_limit()
async def extract_text_route(request: Request, file: UploadFile = File(...)):
    _ = request
    filename = file.filename or "uploaded-file"
    try:
        content = await _read_upload(file)
        extracted = await extract_text_async(content, filename)
    except AnalyzerError as exc:
        return _error_response(exc)
    return ExtractTextResponse(
        filename=extracted.filename,
        source_type=extracted.source_type,
        text=extracted.text,
        characters=extracted.characters,
    )


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
@rate_limit()
async def analyze_route(request: Request, payload: AnalyzeRequest):
    client = _analysis_client(request)
    try:
        if payload.session_id:
            session = get_analysis_session(payload.session_id, client)
            return await session.analyze(payload.jd_text, payload.resume_text, payload.email)
        return await client.analyze(payload.jd_text, payload.resume_text, payload.email)
    except AnalyzerError as exc:
        return _error_response(exc)
