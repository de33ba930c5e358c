"""Unit tests for error handling middleware and PII filtering."""

import json
import logging
from unittest.mock import Mock, patch

import pytest
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from statement_extractor.api.middleware.error_handler import (
    handle_extraction_error,
    handle_generic_error,
    handle_validation_error,
)
from statement_extractor.api.middleware.logging import JSONLogFormatter, filter_pii
from statement_extractor.core.errors import ERROR_CATALOG, get_error, is_retryable
from statement_extractor.core.exceptions import ExtractionError, InputError, ProviderError


def _request(path: str = "/api/v1/transactions/parse", method: str = "POST") -> Mock:
    request = Mock(spec=Request)
    request.url.path = path
    request.method = method
    return request


def _body(response: JSONResponse) -> dict:
    return json.loads(response.body.decode())


class TestExtractionErrorHandler:
    """Test custom exception handling."""

    @pytest.mark.asyncio
    async def test_provider_error_with_retry_after(self):
        exc = ProviderError("LLM_002", details={"error": "Model is loading"}, http_status=503, retry_after=15)

        response = await handle_extraction_error(_request(), exc)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 503
        assert response.headers["Retry-After"] == "15"
        content = _body(response)
        assert content["error_code"] == "LLM_002"
        assert content["error"] == "Model is loading. Please try again in 10-20 seconds."
        assert content["retryAfter"] == 15
        assert content["details"] == {"error": "Model is loading"}

    @pytest.mark.asyncio
    async def test_input_error_body(self):
        response = await handle_extraction_error(_request(), InputError("INPUT_001"))

        assert response.status_code == 400
        assert "Retry-After" not in response.headers
        assert _body(response) == {
            "error": "Text is required",
            "error_code": "INPUT_001",
            "suggestion": "Send the statement text in the 'text' field.",
            "retry_allowed": False,
        }

    @pytest.mark.asyncio
    async def test_body_carries_catalog_guidance(self):
        response = await handle_extraction_error(_request(), ProviderError("LLM_006", http_status=503))

        content = _body(response)
        assert content["error"] == "Failed to parse with LLM"
        assert content["suggestion"] == "Retry with mode=pattern."
        assert content["retry_allowed"] is False

    @pytest.mark.asyncio
    async def test_rate_limit_status(self):
        response = await handle_extraction_error(_request(), ProviderError("LLM_001", http_status=429))

        assert response.status_code == 429
        assert _body(response)["error"].startswith("Rate limit reached")


class TestValidationErrorHandler:
    """Test validation error handling."""

    @pytest.mark.asyncio
    async def test_missing_text_is_input_001(self):
        exc = RequestValidationError(
            errors=[{"loc": ("body", "text"), "msg": "Field required", "type": "missing"}]
        )

        response = await handle_validation_error(_request(), exc)

        assert response.status_code == 400
        content = _body(response)
        assert content["error_code"] == "INPUT_001"
        assert content["error"] == "Text is required"
        assert content["details"] == ["body.text: Field required"]

    @pytest.mark.asyncio
    async def test_other_fields_are_generic(self):
        exc = RequestValidationError(
            errors=[
                {"loc": ("body", "mode"), "msg": "Input should be 'pattern', 'llm' or 'auto'", "type": "literal_error"},
            ]
        )

        response = await handle_validation_error(_request(), exc)

        assert response.status_code == 400
        content = _body(response)
        assert content["error_code"] == "VAL_001"
        assert content["error"] == "Invalid request"
        assert "mode" in content["details"][0]


class TestGenericErrorHandler:
    """Test handling of unexpected exceptions."""

    @pytest.mark.asyncio
    async def test_internals_hidden_without_debug(self):
        with patch("statement_extractor.api.middleware.error_handler.settings", Mock(debug=False)):
            response = await handle_generic_error(_request(), RuntimeError("secret statement text"))

        assert response.status_code == 500
        content = _body(response)
        assert content == {
            "error": "Internal server error",
            "error_code": "SYS_001",
            "suggestion": "Please try again later or contact support.",
            "retry_allowed": True,
        }

    @pytest.mark.asyncio
    async def test_debug_exposes_details(self):
        with patch("statement_extractor.api.middleware.error_handler.settings", Mock(debug=True)):
            response = await handle_generic_error(_request(), RuntimeError("boom"))

        assert _body(response)["details"] == "boom"


class TestErrorCatalog:
    def test_every_entry_is_complete(self):
        for code, entry in ERROR_CATALOG.items():
            assert entry["code"] == code
            assert {"message", "user_message", "suggestion", "retry_allowed"} <= entry.keys()

    def test_unknown_code_falls_back(self):
        assert get_error("NOPE_999")["code"] == "UNKNOWN"

    def test_retryable_flags(self):
        assert is_retryable("LLM_002")
        assert not is_retryable("INPUT_001")


class TestPIIFiltering:
    """Test PII filtering in logs."""

    def test_filter_card_number(self):
        assert filter_pii("Card 4520 1234 5678 9012 declined") == "Card [CARD] declined"

    def test_filter_masked_account(self):
        assert filter_pii("PAYMENT FROM - *****29*8226") == "PAYMENT FROM - [ACCOUNT]"

    def test_filter_email(self):
        filtered = filter_pii("Contact: jane.doe@example.com")

        assert "jane.doe@example.com" not in filtered
        assert "[EMAIL]" in filtered

    def test_filter_phone_number(self):
        filtered = filter_pii("Call (416) 555-0199 for help")

        assert "555-0199" not in filtered
        assert "[PHONE]" in filtered

    def test_filter_sin(self):
        assert filter_pii("SIN 123-456-789") == "SIN [SIN]"

    def test_filter_preserves_transaction_lines(self):
        line = "Dec 18 MB-Transfer to Credit Card 313.10 6,977.93"

        assert filter_pii(line) == line

    def test_filter_empty_string(self):
        assert filter_pii("") == ""

    def test_filter_none(self):
        assert filter_pii(None) is None


class TestLoggingBehavior:
    """Test logging behavior of error handlers and the JSON formatter."""

    @pytest.mark.asyncio
    async def test_errors_are_logged(self, caplog):
        exc = ProviderError("LLM_005", http_status=503)

        with caplog.at_level(logging.ERROR):
            await handle_extraction_error(_request(), exc)

        assert "LLM_005" in caplog.text

    @pytest.mark.asyncio
    async def test_validation_errors_logged_as_warning(self, caplog):
        exc = RequestValidationError(errors=[{"loc": ("body", "text"), "msg": "missing", "type": "missing"}])

        with caplog.at_level(logging.WARNING):
            await handle_validation_error(_request(), exc)

        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_json_formatter_keeps_extras_and_filters_message(self):
        record = logging.LogRecord(
            name="statement_extractor.llm.extractor",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Contact jane.doe@example.com",
            args=(),
            exc_info=None,
        )
        record.provider = "mistral"
        record.attempts = 2

        data = json.loads(JSONLogFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["message"] == "Contact [EMAIL]"
        assert data["provider"] == "mistral"
        assert data["attempts"] == 2


def test_extraction_error_defaults():
    exc = ExtractionError("PARSE_002")

    assert exc.http_status == 500
    assert exc.retry_after is None
    assert str(exc) == "PARSE_002"
