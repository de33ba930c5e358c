"""Statement period resolution and post-hoc year correction.

The billing period printed on a statement ("Dec 8, 2024 - Jan 7, 2025")
supplies the year for year-less transaction rows and a window used to
sanity-check dates misread by OCR or an LLM.
"""

import logging
import re
from datetime import date
from enum import Enum

from statement_extractor.parsers.dates import MONTH_TOKEN, DateNormalizer
from statement_extractor.schemas.internal import StatementPeriod

logger = logging.getLogger(__name__)


class YearCorrection(str, Enum):
    """How aggressively out-of-period years are rewritten."""

    ALWAYS = "always"
    BOUNDED = "bounded"
    OFF = "off"


class StatementPeriodResolver:
    """Find the statement period in free text and correct dates against it.

    Example:
        >>> resolver = StatementPeriodResolver()
        >>> period = resolver.resolve("Statement Period Dec 8, 2024 - Jan 7, 2025", 2026)
        >>> period.reference_year
        2025
    """

    PERIOD_PATTERN = re.compile(
        rf"(?:Statement\s+Period[:\s]*)?\b({MONTH_TOKEN})\s+(\d{{1,2}}),?\s+(\d{{4}})"
        rf"\s*(?:-|–|to)\s*({MONTH_TOKEN})\s+(\d{{1,2}}),?\s+(\d{{4}})",
        re.IGNORECASE,
    )

    # Dates this far before the period start are treated as a one-year misread.
    EARLY_THRESHOLD_DAYS = 90

    def __init__(
        self,
        policy: YearCorrection | str = YearCorrection.ALWAYS,
        grace_days: int = 31,
        date_normalizer: DateNormalizer | None = None,
    ):
        """Initialize the resolver.

        Args:
            policy: Year-correction policy ("always", "bounded" or "off")
            grace_days: With the bounded policy, overruns past the period end
                of at most this many days are left untouched
            date_normalizer: Used to read month names from the period text
        """
        self.policy = YearCorrection(policy)
        self.grace_days = grace_days
        self.dates = date_normalizer or DateNormalizer()

    def resolve(self, full_text: str | None, default_year: int) -> StatementPeriod:
        """Extract the statement period from text.

        Args:
            full_text: Statement text or a bare period string
            default_year: Reference year when no period is found (normally
                the current year, injected by the caller)

        Returns:
            StatementPeriod; bounds are None when no span was found
        """
        match = self.PERIOD_PATTERN.search(full_text or "")
        if not match:
            return StatementPeriod(reference_year=default_year)

        start = self._to_date(match.group(1), match.group(2), match.group(3))
        end = self._to_date(match.group(4), match.group(5), match.group(6))
        reference_year = max(int(match.group(3)), int(match.group(6)))

        logger.debug(
            "Resolved statement period",
            extra={"start": str(start), "end": str(end), "reference_year": reference_year},
        )
        return StatementPeriod(start_date=start, end_date=end, reference_year=reference_year)

    def correct(self, value: date, period: StatementPeriod) -> date:
        """Rewrite a date whose year looks misread relative to the period.

        - After the period end with a later year: subtract the year delta.
        - More than ~3 months before the period start and exactly one year
          earlier than the start year: add one year.

        This is a heuristic; a genuine post-close transaction dated in the
        following year is rewritten under the "always" policy.
        """
        if self.policy is YearCorrection.OFF:
            return value

        end, start = period.end_date, period.start_date

        if end is not None and value > end:
            delta = value.year - end.year
            overrun_days = (value - end).days
            if delta >= 1 and not (
                self.policy is YearCorrection.BOUNDED and overrun_days <= self.grace_days
            ):
                corrected = _shift_year(value, -delta)
                logger.debug(
                    "Corrected future-dated transaction",
                    extra={"original": str(value), "corrected": str(corrected)},
                )
                return corrected

        if start is not None and (start - value).days > self.EARLY_THRESHOLD_DAYS:
            if start.year - value.year == 1:
                return _shift_year(value, 1)

        return value

    def correct_iso(self, value: str, period: StatementPeriod) -> str:
        """String form of correct(); unparseable values are returned unchanged."""
        try:
            parsed = date.fromisoformat(value)
        except ValueError:
            return value
        return self.correct(parsed, period).isoformat()

    def _to_date(self, month_name: str, day: str, year: str) -> date | None:
        month = self.dates.month_of(month_name)
        if month is None:
            return None
        try:
            return date(int(year), month, int(day))
        except ValueError:
            return None


def _shift_year(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # Feb 29 moved into a non-leap year
        return value.replace(year=value.year + years, day=28)
