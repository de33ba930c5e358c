"""Custom exception classes for transaction extraction.

This module defines the hierarchy of exceptions raised by the extraction
engine. Each exception maps to an error code defined in errors.py.
A pattern miss (no transactions found) is not an exception; extractors
return an empty list instead.
"""

from typing import Any


class ExtractionError(Exception):
    """Base exception for all extraction errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "LLM_001")
        details: Additional context about the error (provider body, parser message)
        http_status: HTTP status code to return (default: 500)
        retry_after: Seconds the caller should wait before retrying, if known
    """

    def __init__(
        self,
        error_code: str,
        details: Any = None,
        http_status: int = 500,
        retry_after: int | None = None,
    ):
        self.error_code = error_code
        self.details = details
        self.http_status = http_status
        self.retry_after = retry_after
        super().__init__(error_code)


class InputError(ExtractionError):
    """Raised when the request itself is unusable (missing or oversized text).

    No extraction is attempted.
    """

    def __init__(self, error_code: str = "INPUT_001", details: Any = None):
        super().__init__(error_code, details=details, http_status=400)


class ProviderError(ExtractionError):
    """Raised once every configured LLM provider has failed.

    Individual provider failures are recovered locally by advancing the
    fallback chain; only the exhausted chain surfaces as this error.
    """

    pass


class ParseError(ExtractionError):
    """Raised when a provider answered 2xx but the content is unusable.

    Terminal for the LLM path: no further provider is tried.
    """

    def __init__(self, error_code: str = "PARSE_002", details: Any = None):
        super().__init__(error_code, details=details, http_status=500)


class PDFExtractionError(ExtractionError):
    """Raised when text cannot be pulled out of an uploaded PDF.

    Common causes:
    - Corrupted PDF file (PDF_001)
    - Password-protected PDF (PDF_002)
    - Incorrect password (PDF_003)
    - No text layer (PDF_004)
    """

    def __init__(self, error_code: str = "PDF_001", details: Any = None):
        super().__init__(error_code, details=details, http_status=400)
