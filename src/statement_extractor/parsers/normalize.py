"""Shared normalization pass for extracted transactions.

Both extraction paths end here. LLM output is first mapped into
ExtractedTransaction records (sign flip, date choice); every record set then
goes through the same final gate: validation, description cleanup, year
correction and deduplication.
"""

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from statement_extractor.categorization import categorize
from statement_extractor.config import ExtractionConfig
from statement_extractor.parsers.amounts import parse_amount, to_cents
from statement_extractor.parsers.dates import DateNormalizer
from statement_extractor.parsers.period import StatementPeriodResolver
from statement_extractor.parsers.validation import (
    clean_description,
    deduplicate,
    is_valid_transaction_description,
)
from statement_extractor.schemas.internal import StatementPeriod
from statement_extractor.schemas.transaction import ExtractedTransaction

logger = logging.getLogger(__name__)

DESCRIPTION_KEYS = ("details", "name", "description")
# Posting date first: it is when the entry actually hit the account.
DATE_KEYS = ("post_date", "transaction_date", "date")


class TransactionNormalizer:
    """Map raw candidates to final ExtractedTransaction records.

    Example:
        >>> normalizer = TransactionNormalizer(ExtractionConfig(reference_date=date(2025, 1, 10)))
        >>> period = StatementPeriod(reference_year=2025)
        >>> normalizer.from_llm_items(
        ...     [{"details": "UBER EATS", "amount": 40.91, "post_date": "2024-12-08"}], period
        ... )[0].type
        'expense'
    """

    def __init__(
        self,
        config: ExtractionConfig,
        resolver: StatementPeriodResolver | None = None,
        date_normalizer: DateNormalizer | None = None,
    ):
        self.config = config
        self.dates = date_normalizer or DateNormalizer()
        self.resolver = resolver or StatementPeriodResolver(
            policy=config.year_correction,
            grace_days=config.year_correction_grace_days,
            date_normalizer=self.dates,
        )

    def from_llm_items(self, items: Iterable[Any], period: StatementPeriod) -> list[ExtractedTransaction]:
        """Convert decoded LLM items into transactions.

        LLM amounts use "negative = credit": a negative amount becomes an
        income record, anything else an expense. Items without a usable
        description or amount are dropped.
        """
        out: list[ExtractedTransaction] = []
        skipped = 0
        for item in items:
            txn = self._from_llm_item(item, period)
            if txn is None:
                skipped += 1
                continue
            out.append(txn)

        if skipped:
            logger.debug("Dropped unusable LLM items", extra={"skipped": skipped, "kept": len(out)})
        return out

    def finalize(
        self, transactions: Iterable[ExtractedTransaction], period: StatementPeriod
    ) -> list[ExtractedTransaction]:
        """Final gate applied to the output of either extractor."""
        final: list[ExtractedTransaction] = []
        for txn in transactions:
            if not is_valid_transaction_description(txn.name):
                continue
            updates: dict[str, Any] = {
                "name": clean_description(txn.name),
                "date": self.resolver.correct_iso(txn.date, period),
            }
            if self.config.infer_categories and not txn.category:
                updates["category"] = categorize(updates["name"], txn.type)
            final.append(txn.model_copy(update=updates))
        return deduplicate(final)

    def _from_llm_item(self, item: Any, period: StatementPeriod) -> ExtractedTransaction | None:
        if not isinstance(item, dict):
            return None

        details = next((item[k] for k in DESCRIPTION_KEYS if item.get(k)), None)
        raw_amount = item.get("amount")
        if not isinstance(details, str) or raw_amount is None or raw_amount == "":
            return None
        if not is_valid_transaction_description(details):
            return None

        try:
            value = parse_amount(raw_amount)
        except ValueError:
            return None
        cents = to_cents(value)
        if cents < 1:
            return None

        category = item.get("category")
        return ExtractedTransaction(
            name=clean_description(details),
            date=self._item_date(item, period),
            amount=cents,
            type="income" if value < 0 else "expense",
            category=category if isinstance(category, str) and category.strip() else None,
            raw_text=details.strip()[:500],
        )

    def _item_date(self, item: dict, period: StatementPeriod) -> str:
        raw = next((item[k] for k in DATE_KEYS if item.get(k)), None)
        if raw is None:
            return f"{period.reference_year}-01-01"
        text = str(raw).strip()
        try:
            return date.fromisoformat(text[:10]).isoformat()
        except ValueError:
            return self.dates.normalize(text, period.reference_year, period=period)
