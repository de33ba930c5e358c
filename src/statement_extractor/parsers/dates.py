"""Date normalization for statement text.

Statements print dates in many loose shapes ("12/18/2024", "Dec 18",
"2024-12-18", "18/12"). DateNormalizer turns any of them into a canonical
YYYY-MM-DD string, substituting a caller-supplied reference year when the
token carries none.
"""

import re
from datetime import date, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from statement_extractor.schemas.internal import StatementPeriod

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Abbreviated or full month name ("Dec", "Dec.", "December", "Sept").
MONTH_TOKEN = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\b\.?"
)


class DateNormalizer:
    """Convert loosely formatted date tokens into YYYY-MM-DD.

    Token shapes are tried in a fixed order; the first shape that matches
    decides the interpretation:

        1. MM/DD/YYYY (month first; DD/MM/YYYY when the first group > 12)
        2. YYYY/MM/DD (also ISO YYYY-MM-DD)
        3. Mon DD, YYYY
        4. Mon DD            (year-less)
        5. MM/DD or DD/MM    (year-less; first group > 12 means day first)

    Example:
        >>> DateNormalizer().normalize("Dec 18", 2024)
        '2024-12-18'
    """

    PATTERNS: list[tuple[str, re.Pattern]] = [
        ("mdy", re.compile(r"(?<!\d)(\d{1,2})[/-](\d{1,2})[/-](\d{4})(?!\d)")),
        ("ymd", re.compile(r"(?<!\d)(\d{4})[/-](\d{1,2})[/-](\d{1,2})(?!\d)")),
        ("mon_d_y", re.compile(rf"\b({MONTH_TOKEN})\s+(\d{{1,2}}),?\s+(\d{{4}})(?!\d)", re.IGNORECASE)),
        ("mon_d", re.compile(rf"\b({MONTH_TOKEN})\s+(\d{{1,2}})(?!\d)", re.IGNORECASE)),
        ("md", re.compile(r"(?<![\d.,])(\d{1,2})[/-](\d{1,2})(?![\d.,/-])")),
    ]

    # Last-resort formats for tokens none of the shapes above recognise.
    FALLBACK_FORMATS = [
        "%d-%b-%Y",  # 15-Jan-2025
        "%d-%b-%y",  # 15-Jan-25
        "%d %b %Y",  # 15 Jan 2025
        "%d %B %Y",  # 15 January 2025
        "%d %b, %Y",  # 15 Jan, 2025
        "%d.%m.%Y",  # 15.01.2025
        "%Y%m%d",  # 20250115
        "%B %d %Y",  # January 15 2025
    ]

    def normalize(
        self,
        token: str,
        reference_year: int,
        period: "StatementPeriod | None" = None,
    ) -> str:
        """Normalize a date token to YYYY-MM-DD.

        Never raises: an unrecognisable or impossible token yields the
        sentinel f"{reference_year}-01-01".

        Args:
            token: Loose date text (may contain surrounding words)
            reference_year: Year used when the token has none
            period: Optional statement period; when given, year-less
                tokens take the year that places them inside the period

        Returns:
            Canonical date string
        """
        parsed = self.parse(token, reference_year, period=period)
        if parsed is None:
            return f"{reference_year}-01-01"
        return parsed.isoformat()

    def parse(
        self,
        token: str,
        reference_year: int,
        period: "StatementPeriod | None" = None,
    ) -> date | None:
        """Parse a date token, returning None when it cannot be interpreted."""
        if not token or not token.strip():
            return None
        text = token.strip()

        for shape, pattern in self.PATTERNS:
            match = pattern.search(text)
            if not match:
                continue
            year, month, day = self._fields(shape, match, reference_year, period)
            try:
                return date(year, month, day)
            except ValueError:
                # A shape matched but the fields are impossible (month 13):
                # do not reinterpret the token through a later shape.
                break

        return self._parse_generic(text)

    def find_date_token(self, line: str) -> re.Match | None:
        """Return the first date-looking match in a line, by shape priority."""
        for _, pattern in self.PATTERNS:
            match = pattern.search(line)
            if match:
                return match
        return None

    def month_of(self, name: str) -> int | None:
        return MONTHS.get(name.strip().rstrip(".")[:3].lower())

    def _fields(
        self,
        shape: str,
        match: re.Match,
        reference_year: int,
        period: "StatementPeriod | None",
    ) -> tuple[int, int, int]:
        groups = match.groups()
        if shape == "mdy":
            first, second, year = (int(g) for g in groups)
            if first > 12 and second <= 12:
                return year, second, first
            return year, first, second
        if shape == "ymd":
            year, month, day = (int(g) for g in groups)
            return year, month, day
        if shape == "mon_d_y":
            month = self.month_of(groups[0]) or 0
            return int(groups[2]), month, int(groups[1])
        if shape == "mon_d":
            month = self.month_of(groups[0]) or 0
            return self._year_for(month, reference_year, period), month, int(groups[1])

        first, second = int(groups[0]), int(groups[1])
        month, day = (second, first) if first > 12 else (first, second)
        return self._year_for(month, reference_year, period), month, day

    @staticmethod
    def _year_for(month: int, reference_year: int, period: "StatementPeriod | None") -> int:
        if period is None:
            return reference_year
        return period.year_for_month(month)

    def _parse_generic(self, text: str) -> date | None:
        for fmt in self.FALLBACK_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        return None

