"""Tests for TransactionNormalizer."""

from datetime import date

import pytest

from statement_extractor.config import ExtractionConfig
from statement_extractor.parsers.normalize import TransactionNormalizer
from statement_extractor.schemas.internal import StatementPeriod
from statement_extractor.schemas.transaction import ExtractedTransaction

CROSSING_PERIOD = StatementPeriod(
    start_date=date(2024, 12, 8), end_date=date(2025, 1, 7), reference_year=2025
)


@pytest.fixture
def normalizer(extraction_config) -> TransactionNormalizer:
    return TransactionNormalizer(extraction_config)


@pytest.fixture
def open_period() -> StatementPeriod:
    return StatementPeriod(reference_year=2025)


class TestFromLLMItems:
    def test_positive_amount_is_expense(self, normalizer, open_period):
        items = [{"details": "UBER EATS", "amount": 40.91, "post_date": "2024-12-08"}]

        txns = normalizer.from_llm_items(items, open_period)

        assert len(txns) == 1
        assert txns[0].name == "UBER EATS"
        assert txns[0].amount == 4091
        assert txns[0].type == "expense"
        assert txns[0].date == "2024-12-08"

    def test_negative_amount_is_income(self, normalizer, open_period):
        items = [{"details": "PAYMENT - THANK YOU", "amount": -500, "post_date": "2024-12-10"}]

        txn = normalizer.from_llm_items(items, open_period)[0]

        assert txn.type == "income"
        assert txn.amount == 50000

    def test_balance_rows_are_dropped(self, normalizer, open_period):
        items = [
            {"details": "Opening Balance", "amount": 500.00},
            {"details": "UBER EATS", "amount": 40.91, "post_date": "2024-12-08"},
        ]

        txns = normalizer.from_llm_items(items, open_period)

        assert [t.name for t in txns] == ["UBER EATS"]

    @pytest.mark.parametrize(
        "item",
        [
            "UBER EATS 40.91",
            {"details": "UBER EATS"},
            {"details": "UBER EATS", "amount": ""},
            {"details": "UBER EATS", "amount": "n/a"},
            {"details": "UBER EATS", "amount": 0},
            {"details": "", "amount": 10},
            {"details": 42, "amount": 10},
        ],
    )
    def test_unusable_items_are_skipped(self, normalizer, open_period, item):
        assert normalizer.from_llm_items([item], open_period) == []

    def test_name_and_description_keys(self, normalizer, open_period):
        items = [
            {"name": "NETFLIX.COM", "amount": "16.99", "date": "2024-12-01"},
            {"description": "SPOTIFY P0A1", "amount": "$11.99", "date": "2024-12-02"},
        ]

        txns = normalizer.from_llm_items(items, open_period)

        assert [(t.name, t.amount) for t in txns] == [("NETFLIX.COM", 1699), ("SPOTIFY P0A1", 1199)]

    def test_post_date_preferred_over_transaction_date(self, normalizer, open_period):
        item = {
            "details": "SHELL C01234",
            "amount": 60,
            "transaction_date": "2024-12-07",
            "post_date": "2024-12-09",
        }

        assert normalizer.from_llm_items([item], open_period)[0].date == "2024-12-09"

    def test_transaction_date_used_without_post_date(self, normalizer, open_period):
        item = {"details": "SHELL C01234", "amount": 60, "transaction_date": "2024-12-07"}

        assert normalizer.from_llm_items([item], open_period)[0].date == "2024-12-07"

    def test_iso_timestamp_is_truncated(self, normalizer, open_period):
        item = {"details": "SHELL C01234", "amount": 60, "date": "2024-12-07T13:45:00Z"}

        assert normalizer.from_llm_items([item], open_period)[0].date == "2024-12-07"

    def test_loose_date_uses_period(self, normalizer):
        item = {"details": "SHELL C01234", "amount": 60, "date": "Dec 18"}

        assert normalizer.from_llm_items([item], CROSSING_PERIOD)[0].date == "2024-12-18"

    def test_missing_date_gets_sentinel(self, normalizer, open_period):
        item = {"details": "SHELL C01234", "amount": 60}

        assert normalizer.from_llm_items([item], open_period)[0].date == "2025-01-01"

    def test_category_and_raw_text(self, normalizer, open_period):
        long_details = "SHELL " + "X" * 600
        items = [
            {"details": "SHELL C01234", "amount": 60, "category": "Transportation"},
            {"details": long_details, "amount": 60, "category": "  "},
        ]

        first, second = normalizer.from_llm_items(items, open_period)

        assert first.category == "Transportation"
        assert first.raw_text == "SHELL C01234"
        assert second.category is None
        assert len(second.raw_text) == 500
        assert len(second.name) == 200


class TestFinalize:
    def _txn(self, name: str, day: str, amount: int = 1000, **kwargs) -> ExtractedTransaction:
        return ExtractedTransaction(name=name, date=day, amount=amount, type="expense", **kwargs)

    def test_future_year_is_corrected(self, normalizer):
        period = StatementPeriod(
            start_date=date(2023, 12, 8), end_date=date(2024, 1, 7), reference_year=2024
        )

        result = normalizer.finalize([self._txn("GROCERY STORE", "2025-12-30")], period)

        assert result[0].date == "2024-12-30"

    def test_off_policy_leaves_dates_alone(self, reference_date):
        normalizer = TransactionNormalizer(
            ExtractionConfig(reference_date=reference_date, year_correction="off")
        )
        period = StatementPeriod(
            start_date=date(2023, 12, 8), end_date=date(2024, 1, 7), reference_year=2024
        )

        result = normalizer.finalize([self._txn("GROCERY STORE", "2025-12-30")], period)

        assert result[0].date == "2025-12-30"

    def test_filters_cleans_and_deduplicates(self, normalizer, open_period):
        txns = [
            self._txn("Closing Balance", "2024-12-18"),
            self._txn("12345678   UBER   EATS", "2024-12-18"),
            self._txn("UBER EATS", "2024-12-18"),
            self._txn("UBER EATS", "2024-12-19"),
        ]

        result = normalizer.finalize(txns, open_period)

        assert [(t.name, t.date) for t in result] == [
            ("UBER EATS", "2024-12-18"),
            ("UBER EATS", "2024-12-19"),
        ]

    def test_categories_not_inferred_by_default(self, normalizer, open_period):
        result = normalizer.finalize([self._txn("NETFLIX.COM", "2024-12-01")], open_period)

        assert result[0].category is None

    def test_category_hint_when_enabled(self, reference_date, open_period):
        normalizer = TransactionNormalizer(
            ExtractionConfig(reference_date=reference_date, infer_categories=True)
        )
        txns = [
            self._txn("NETFLIX", "2024-12-01"),
            self._txn("UBER TRIP", "2024-12-02", category="Business travel"),
        ]

        result = normalizer.finalize(txns, open_period)

        assert result[0].category == "Subscription"
        assert result[1].category == "Business travel"
