"""Transaction extraction endpoints."""

from fastapi import APIRouter, Depends

from statement_extractor.api.deps import get_orchestrator
from statement_extractor.schemas.transaction import (
    ErrorResponse,
    ExtractRequest,
    ParseRequest,
    ParseResponse,
)
from statement_extractor.services.extraction import ExtractionMode, ExtractionOrchestrator

router = APIRouter(prefix="/transactions", tags=["transactions"])

ERROR_RESPONSES = {
    400: {"description": "Missing or invalid input", "model": ErrorResponse},
    429: {"description": "LLM provider rate limited", "model": ErrorResponse},
    500: {"description": "LLM response could not be parsed", "model": ErrorResponse},
    503: {"description": "LLM provider unavailable", "model": ErrorResponse},
}


@router.post(
    "/parse",
    response_model=ParseResponse,
    response_model_by_alias=True,
    summary="Parse transactions with an LLM",
    description="""
    Extract transactions from statement text using the LLM provider chain
    (Mistral, then Hugging Face, then OpenAI).

    `method` reports the provider that answered. Failures carry an actionable
    message; when every provider is exhausted, retry with pattern extraction
    via `/transactions/extract`.
    """,
    responses=ERROR_RESPONSES,
)
async def parse_transactions(
    body: ParseRequest,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> ParseResponse:
    result = await orchestrator.extract(body.text, body.statement_period, mode=ExtractionMode.LLM)
    return ParseResponse(transactions=result.transactions, method=result.method)


@router.post(
    "/extract",
    response_model=ParseResponse,
    response_model_by_alias=True,
    summary="Extract transactions",
    description="""
    Extract transactions from statement text.

    ## Modes
    - `pattern`: local regex heuristics, no network calls
    - `llm`: LLM provider chain only
    - `auto`: LLM first, falling back to pattern extraction on any failure
      or an empty LLM result (default, see `EXTRACTION_MODE`)
    """,
    responses=ERROR_RESPONSES,
)
async def extract_transactions(
    body: ExtractRequest,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> ParseResponse:
    result = await orchestrator.extract(body.text, body.statement_period, mode=body.mode)
    return ParseResponse(transactions=result.transactions, method=result.method)
