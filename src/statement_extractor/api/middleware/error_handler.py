"""Global error handling middleware.

This module provides consistent error responses across all API endpoints.
Exceptions are converted to the `{error, error_code, details?, suggestion,
retry_allowed, retryAfter?}` body with the HTTP status of their failure class.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from statement_extractor.config import settings
from statement_extractor.core.errors import get_error, get_user_message, is_retryable
from statement_extractor.core.exceptions import ExtractionError
from statement_extractor.schemas.transaction import ErrorResponse

logger = logging.getLogger(__name__)


def _error_body(
    error_code: str,
    details: object = None,
    retry_after: int | None = None,
) -> dict:
    body = ErrorResponse(
        error=get_user_message(error_code),
        error_code=error_code,
        details=details,
        suggestion=get_error(error_code)["suggestion"],
        retry_allowed=is_retryable(error_code),
        retry_after=retry_after,
    )
    return body.model_dump(by_alias=True, exclude_none=True)


async def handle_extraction_error(request: Request, exc: ExtractionError) -> JSONResponse:
    """Handle extraction engine exceptions.

    Args:
        request: The incoming request
        exc: The extraction exception

    Returns:
        JSONResponse with the catalog message for the error code
    """
    extra = {"error_code": exc.error_code, "path": request.url.path, "method": request.method}
    if settings.debug:
        extra["details"] = exc.details

    logger.error(f"Extraction error: {exc.error_code}", extra=extra)

    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
    return JSONResponse(
        status_code=exc.http_status,
        content=_error_body(exc.error_code, exc.details, exc.retry_after),
        headers=headers,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request body validation errors as 400s.

    A missing or non-string `text` field is reported with the same message
    as a blank one.
    """
    errors = exc.errors()
    error_messages = []
    text_invalid = False

    for error in errors:
        loc = [str(x) for x in error.get("loc", [])]
        if "text" in loc:
            text_invalid = True
        field = ".".join(loc)
        error_messages.append(f"{field}: {error.get('msg', 'Invalid value')}")

    extra = {"path": request.url.path, "method": request.method}
    if settings.debug:
        extra["errors"] = errors
    logger.warning(f"Validation error on {request.url.path}", extra=extra)

    if text_invalid:
        content = _error_body("INPUT_001", details=error_messages)
    else:
        content = _error_body("VAL_001", details=error_messages)

    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


async def handle_generic_error(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Args:
        request: The incoming request
        exc: The unexpected exception

    Returns:
        JSONResponse with generic error message
    """
    # In non-debug: do not log str(exc) or traceback (may include statement text).
    extra = {
        "error_type": type(exc).__name__,
        "path": request.url.path,
        "method": request.method,
    }
    if settings.debug:
        logger.exception(f"Unexpected error on {request.url.path}", extra=extra)
    else:
        logger.error(f"Unexpected error on {request.url.path}", extra=extra)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "SYS_001",
            details=str(exc) if settings.debug else None,
        ),
    )
