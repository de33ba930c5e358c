"""Statement PDF endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, Request
from starlette.concurrency import run_in_threadpool

from statement_extractor.api.deps import get_orchestrator, get_pdf_text_extractor, get_settings
from statement_extractor.config import Settings
from statement_extractor.core.exceptions import ExtractionError
from statement_extractor.parsers.pdf_text import PDF_MAGIC, PDFTextExtractor
from statement_extractor.schemas.transaction import ErrorResponse, ParseResponse
from statement_extractor.services.extraction import ExtractionMode, ExtractionOrchestrator

router = APIRouter(prefix="/statements", tags=["statements"])


@router.post(
    "/extract",
    response_model=ParseResponse,
    response_model_by_alias=True,
    summary="Extract transactions from a statement PDF",
    description="""
    Pull the text layer out of a statement PDF and extract its transactions.

    ## File Requirements
    - Request body must be raw PDF bytes (`Content-Type: application/pdf`)
    - Maximum size: configurable via `PDF_MAX_SIZE_MB` (default: 10MB)
    - Supports password-protected PDFs (optional `X-PDF-Password` header)

    ## Error Codes
    - API_001: Invalid file type
    - API_002: File too large
    - API_003: Invalid PDF file
    - PDF_002: PDF requires password - retry with password
    - PDF_003: Incorrect password - verify and retry
    - PDF_004: No text layer (scanned statement)
    """,
    responses={
        400: {"description": "Invalid file, wrong password, etc.", "model": ErrorResponse},
    },
)
async def extract_statement(
    request: Request,
    password: Annotated[
        str | None,
        Header(alias="X-PDF-Password", description="Optional password for encrypted PDFs."),
    ] = None,
    statement_period: Annotated[
        str | None,
        Query(alias="statementPeriod", description='e.g. "Dec 8, 2024 - Jan 7, 2025"'),
    ] = None,
    mode: Annotated[ExtractionMode, Query()] = ExtractionMode.AUTO,
    app_settings: Settings = Depends(get_settings),
    pdf_extractor: PDFTextExtractor = Depends(get_pdf_text_extractor),
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> ParseResponse:
    content_type = (request.headers.get("content-type") or "").split(";")[0].strip()
    if content_type.lower() != "application/pdf":
        raise ExtractionError("API_001", http_status=400)

    # Read request body in-memory with a strict size cap (no disk spooling).
    max_bytes = app_settings.pdf_max_size_mb * 1024 * 1024
    buf = bytearray()
    async for chunk in request.stream():
        if not chunk:
            continue
        if len(buf) + len(chunk) > max_bytes:
            raise ExtractionError(
                "API_002", details={"max_size_mb": app_settings.pdf_max_size_mb}, http_status=400
            )
        buf.extend(chunk)
    pdf_bytes = bytes(buf)

    if not pdf_bytes.startswith(PDF_MAGIC):
        raise ExtractionError("API_003", http_status=400)

    # pypdf is synchronous and CPU-bound
    text = await run_in_threadpool(pdf_extractor.extract_text, pdf_bytes, password)

    result = await orchestrator.extract(text, statement_period, mode=mode)
    return ParseResponse(transactions=result.transactions, method=result.method)
