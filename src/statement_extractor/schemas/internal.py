"""Internal data schemas used while extracting transactions.

These models are request-scoped: they are built at the start of one
extraction call and discarded once the final transaction list is returned.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from statement_extractor.schemas.transaction import ExtractedTransaction

ProviderName = Literal["mistral", "huggingface", "openai"]


class StatementPeriod(BaseModel):
    """Billing-cycle date range used to disambiguate year-less dates.

    `reference_year` is always populated: the later year of the period, or
    the injected default year when no period could be resolved.
    """

    start_date: date | None = Field(None, description="First day of the billing cycle")
    end_date: date | None = Field(None, description="Last day of the billing cycle")
    reference_year: int = Field(..., description="Year substituted into year-less dates")

    @model_validator(mode="after")
    def order_bounds(self) -> "StatementPeriod":
        """Swap reversed bounds so start_date <= end_date always holds."""
        if self.start_date and self.end_date and self.start_date > self.end_date:
            self.start_date, self.end_date = self.end_date, self.start_date
        return self

    @property
    def is_resolved(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def year_for_month(self, month: int | None) -> int:
        """Pick the calendar year for a year-less date in this period.

        For a period crossing a year boundary (Dec 8, 2024 - Jan 7, 2025),
        months after the end month belong to the start year.
        """
        if (
            month is not None
            and self.is_resolved
            and self.start_date.year < self.end_date.year
            and month > self.end_date.month
        ):
            return self.start_date.year
        return self.reference_year


@dataclass(frozen=True)
class ProviderAttempt:
    """Outcome of one call to one LLM provider.

    Either `succeeded` with decoded `body`/`content`, or failed with an
    HTTP status (None for network errors) and an error detail.
    """

    provider_name: ProviderName
    succeeded: bool
    http_status: int | None = None
    error_detail: str | None = None
    body: Any = None
    content: str | None = None


@dataclass
class LLMExtractionResult:
    """Transactions produced by the LLM path plus the provider that produced them."""

    transactions: list[ExtractedTransaction]
    used_provider: ProviderName
    attempts: list[ProviderAttempt] = field(default_factory=list)


@dataclass
class ExtractionResult:
    """Final output of one orchestrated extraction call."""

    transactions: list[ExtractedTransaction]
    method: str
    statement_period: StatementPeriod | None = None
