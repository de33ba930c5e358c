"""Tests for DateNormalizer."""

from datetime import date

import pytest

from statement_extractor.parsers.dates import DateNormalizer
from statement_extractor.schemas.internal import StatementPeriod


@pytest.fixture
def normalizer() -> DateNormalizer:
    return DateNormalizer()


class TestNormalize:
    """Token shapes, in priority order."""

    @pytest.mark.parametrize("year", [1999, 2024, 2025, 2031])
    def test_month_day_uses_reference_year(self, normalizer, year):
        assert normalizer.normalize("Jan 15", year) == f"{year}-01-15"

    def test_month_first_slash_date(self, normalizer):
        assert normalizer.normalize("12/18/2024", 2020) == "2024-12-18"

    def test_day_first_when_first_group_exceeds_twelve(self, normalizer):
        assert normalizer.normalize("18/12/2024", 2020) == "2024-12-18"

    def test_ambiguous_slash_date_is_month_first(self, normalizer):
        assert normalizer.normalize("03/04/2024", 2020) == "2024-03-04"

    def test_iso_and_year_first(self, normalizer):
        assert normalizer.normalize("2024-12-08", 2020) == "2024-12-08"
        assert normalizer.normalize("2024/1/5", 2020) == "2024-01-05"

    def test_month_name_with_year(self, normalizer):
        assert normalizer.normalize("Dec 18, 2024", 2020) == "2024-12-18"
        assert normalizer.normalize("December 18 2024", 2020) == "2024-12-18"
        assert normalizer.normalize("Sept 3, 2023", 2020) == "2023-09-03"

    def test_year_less_numeric(self, normalizer):
        assert normalizer.normalize("12/18", 2024) == "2024-12-18"
        assert normalizer.normalize("18/12", 2024) == "2024-12-18"

    def test_generic_fallback_formats(self, normalizer):
        assert normalizer.normalize("15-Jan-2025", 2020) == "2025-01-15"
        assert normalizer.normalize("15.01.2025", 2020) == "2025-01-15"

    def test_unparseable_token_returns_sentinel(self, normalizer):
        assert normalizer.normalize("not a date", 2024) == "2024-01-01"
        assert normalizer.normalize("", 2024) == "2024-01-01"

    def test_impossible_month_returns_sentinel(self, normalizer):
        assert normalizer.normalize("13/45/2024", 2023) == "2023-01-01"

    def test_impossible_day_is_not_reinterpreted(self, normalizer):
        assert normalizer.normalize("Feb 30, 2024", 2022) == "2022-01-01"

    def test_token_embedded_in_text(self, normalizer):
        assert normalizer.normalize("Posted on Dec 18 at branch", 2024) == "2024-12-18"

    @pytest.mark.parametrize(
        "value",
        [date(2024, 1, 1), date(2024, 2, 29), date(2023, 12, 31), date(2025, 7, 4)],
    )
    def test_mm_dd_yyyy_round_trip(self, normalizer, value):
        token = value.strftime("%m/%d/%Y")
        assert date.fromisoformat(normalizer.normalize(token, 2000)) == value


class TestPeriodAwareYear:
    """Year-less tokens take the year that places them inside the period."""

    def test_december_row_in_period_crossing_new_year(self, normalizer):
        period = StatementPeriod(
            start_date=date(2024, 12, 8), end_date=date(2025, 1, 7), reference_year=2025
        )
        assert normalizer.normalize("Dec 18", 2025, period=period) == "2024-12-18"
        assert normalizer.normalize("Jan 3", 2025, period=period) == "2025-01-03"

    def test_period_within_one_year(self, normalizer):
        period = StatementPeriod(
            start_date=date(2024, 5, 1), end_date=date(2024, 5, 31), reference_year=2024
        )
        assert normalizer.normalize("05/20", 2030, period=period) == "2024-05-20"


class TestFindDateToken:
    def test_finds_month_day(self, normalizer):
        match = normalizer.find_date_token("Dec 18 MB-Transfer to Credit Card 313.10")
        assert match is not None
        assert match.group(0) == "Dec 18"

    def test_ignores_amounts(self, normalizer):
        assert normalizer.find_date_token("STARBUCKS TORONTO 12.50") is None

    def test_does_not_match_words_starting_with_month(self, normalizer):
        assert normalizer.find_date_token("Decision 2 pending") is None
