"""Transaction-specific request/response schemas."""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_NAME_LENGTH = 200


class ExtractedTransaction(BaseModel):
    """A single transaction extracted from statement text.

    Amounts are absolute values in cents; direction lives in `type`.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(
        ..., min_length=1, max_length=MAX_NAME_LENGTH, description="Cleaned merchant/description"
    )
    date: str = Field(..., description="Posting date, YYYY-MM-DD")
    amount: int = Field(..., ge=1, description="Absolute amount in cents")
    type: Literal["income", "expense"] = Field(..., description="Credit (income) or debit (expense)")
    category: str | None = Field(None, description="Category hint (never authoritative)")
    raw_text: str | None = Field(
        None, alias="rawText", description="Source line, kept for audit/debugging"
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        """Ensure the description is not blank."""
        if not v.strip():
            raise ValueError("Name cannot be blank")
        return v.strip()

    @field_validator("date")
    @classmethod
    def date_is_iso(cls, v: str) -> str:
        """Ensure the date is a real calendar date in YYYY-MM-DD form."""
        try:
            parsed = date.fromisoformat(v)
        except ValueError as e:
            raise ValueError(f"Invalid ISO date: {v}") from e
        return parsed.isoformat()

    def dedup_key(self) -> tuple[str, str, int]:
        return (self.name, self.date, self.amount)


class ParseRequest(BaseModel):
    """Body of POST /transactions/parse."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., description="Statement text from the PDF-to-text step")
    statement_period: str | None = Field(
        None,
        alias="statementPeriod",
        description='Free-text billing period, e.g. "Dec 8, 2024 - Jan 7, 2025"',
    )


class ExtractRequest(ParseRequest):
    """Body of POST /transactions/extract."""

    mode: Literal["pattern", "llm", "auto"] | None = Field(
        None, description="Extraction strategy (defaults to EXTRACTION_MODE)"
    )


class ParseResponse(BaseModel):
    """Successful extraction response."""

    success: bool = True
    transactions: list[ExtractedTransaction]
    method: str = Field(..., description="pattern, mistral, huggingface or openai")


class ErrorResponse(BaseModel):
    """Error body returned for extraction failures."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    error_code: str
    details: Any = None
    suggestion: str | None = None
    retry_allowed: bool = False
    retry_after: int | None = Field(None, alias="retryAfter")
