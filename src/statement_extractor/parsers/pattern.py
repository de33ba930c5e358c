"""Deterministic, regex-based transaction extraction.

This module provides the PatternExtractor class, the offline path that
turns statement text into transactions without any external service. It is
also the fallback whenever the LLM path fails.
"""

import logging
import re
from datetime import date

from statement_extractor.parsers.amounts import is_plausible, parse_amount, to_cents
from statement_extractor.parsers.dates import MONTH_TOKEN, DateNormalizer
from statement_extractor.parsers.period import StatementPeriodResolver
from statement_extractor.parsers.strategies import (
    COLUMN_AMOUNT,
    ColumnClassifier,
    GenericLineStrategy,
    LineContext,
    TableRowStrategy,
)
from statement_extractor.parsers.validation import (
    clean_description,
    deduplicate,
    is_valid_transaction_description,
)
from statement_extractor.schemas.internal import StatementPeriod
from statement_extractor.schemas.transaction import ExtractedTransaction

logger = logging.getLogger(__name__)

BANK_NAMES = (
    "scotiabank",
    "rbc royal bank",
    "td canada trust",
    "bmo",
    "cibc",
    "chase",
    "bank of america",
    "wells fargo",
    "capital one",
    "american express",
)

NOISE_PHRASES = (
    "account #",
    "account number",
    "borrowers on this account",
    "previous balance",
    "new balance",
    "minimum payment",
    "payment due",
    "continued on next page",
    "here's what happened",
)


def sort_newest_first(transactions: list[ExtractedTransaction]) -> list[ExtractedTransaction]:
    """Order by date descending; equal dates keep their extraction order."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)


class PatternExtractor:
    """Extract transactions from statement text with line heuristics.

    Pipeline:
        1. Resolve the statement period (caller-supplied string first)
        2. Segment text into lines, re-splitting collapsed PDF text
        3. Drop noise lines (headers, page footers, balance summaries)
        4. Run line strategies in order: table rows, then generic lines
        5. If nothing was found on a short document, scan the whole text
        6. Deduplicate and sort newest first

    extract() never raises; a line that breaks a strategy is skipped.

    Example:
        >>> extractor = PatternExtractor(reference_date=date(2025, 1, 10))
        >>> txns = extractor.extract("Dec 18 MB-Transfer to Credit Card 313.10 6,977.93")
        >>> txns[0].date
        '2025-12-18'
    """

    # Below this many lines, long text is assumed to have lost its newlines.
    COLLAPSED_MAX_LINES = 10
    COLLAPSED_MIN_CHARS = 1000

    # Whole-text scan only runs for documents shorter than this.
    CROSS_PAGE_MAX_LINES = 20

    ROW_BOUNDARY = re.compile(rf"(?=\b{MONTH_TOKEN}\s+\d{{1,2}}\s)", re.IGNORECASE)
    CROSS_PAGE_ROW = re.compile(
        rf"\b({MONTH_TOKEN})\s+(\d{{1,2}})\s+([A-Za-z][^\d\n]*?)((?:\s+{COLUMN_AMOUNT}){{1,3}})(?=\s|$)",
        re.IGNORECASE,
    )

    def __init__(
        self,
        reference_date: date | None = None,
        resolver: StatementPeriodResolver | None = None,
        date_normalizer: DateNormalizer | None = None,
    ):
        """Initialize the extractor.

        Args:
            reference_date: "Today" for year inference when no statement
                period is found; defaults to the current date
            resolver: Statement period resolver
            date_normalizer: Shared date normalizer
        """
        self.reference_date = reference_date or date.today()
        self.dates = date_normalizer or DateNormalizer()
        self.resolver = resolver or StatementPeriodResolver(date_normalizer=self.dates)
        self.classifier = ColumnClassifier()
        self.strategies = [
            TableRowStrategy(self.dates, self.classifier),
            GenericLineStrategy(self.dates),
        ]

    def extract(
        self,
        text: str | None,
        statement_period: str | StatementPeriod | None = None,
    ) -> list[ExtractedTransaction]:
        """Extract transactions from statement text.

        Args:
            text: Plain statement text
            statement_period: Period string or an already-resolved period

        Returns:
            Deduplicated transactions, newest first (possibly empty)
        """
        if not text or not text.strip():
            return []

        period = self.resolve_period(text, statement_period)
        lines = self.segment(text)
        context = LineContext(lines=lines, period=period)

        transactions: list[ExtractedTransaction] = []
        usable = 0
        for index, line in enumerate(lines):
            if self.is_noise(line):
                continue
            usable += 1
            context.index = index
            transactions.extend(self._extract_line(line, context))

        if not transactions and usable < self.CROSS_PAGE_MAX_LINES:
            transactions = self._scan_full_text(text, period)

        transactions = sort_newest_first(deduplicate(transactions))
        logger.info(
            "Pattern extraction finished",
            extra={"lines": len(lines), "usable_lines": usable, "transactions": len(transactions)},
        )
        return transactions

    def resolve_period(
        self, text: str, statement_period: str | StatementPeriod | None
    ) -> StatementPeriod:
        if isinstance(statement_period, StatementPeriod):
            return statement_period
        default_year = self.reference_date.year
        if statement_period:
            period = self.resolver.resolve(statement_period, default_year)
            if period.is_resolved:
                return period
        return self.resolver.resolve(text, default_year)

    def segment(self, text: str) -> list[str]:
        """Split text into stripped, non-empty lines.

        Some PDF-to-text tools emit a whole page as one line. When the text
        is long but has very few lines, it is re-split before every
        "<Mon> <Day> " token.
        """
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        if len(lines) < self.COLLAPSED_MAX_LINES and len(text) > self.COLLAPSED_MIN_CHARS:
            pieces = self.ROW_BOUNDARY.split(" ".join(lines))
            lines = [piece.strip() for piece in pieces if piece.strip()]
            logger.debug("Re-segmented collapsed text", extra={"lines": len(lines)})
        return lines

    def is_noise(self, line: str) -> bool:
        """True for headers, footers and summary lines that are never transactions."""
        stripped = line.strip()
        if len(stripped) < 3 or re.fullmatch(r"[\s\-*=_]+", stripped):
            return True

        lower = stripped.lower()
        has_digit = any(ch.isdigit() for ch in lower)

        if "statement" in lower and ("period" in lower or "date" in lower):
            return True
        if re.search(r"\bpage\b", lower) and has_digit:
            return True
        if any(phrase in lower for phrase in NOISE_PHRASES):
            return True
        if not has_digit and any(name in lower for name in BANK_NAMES):
            return True
        if not has_digit and "card" in lower and ("visa" in lower or "mastercard" in lower):
            return True
        if not has_digit and "date" in lower and ("description" in lower or "details" in lower):
            return True
        if "total" in lower and ("balance" in lower or "amount" in lower):
            return True
        if ("opening balance" in lower or "closing balance" in lower) and "transaction" not in lower:
            return True
        return False

    def _extract_line(self, line: str, context: LineContext) -> list[ExtractedTransaction]:
        for strategy in self.strategies:
            try:
                result = strategy.try_extract(line, context)
            except Exception as e:
                logger.debug(
                    "Skipping line that failed extraction",
                    extra={"strategy": type(strategy).__name__, "error": str(e)},
                )
                return []
            if result is not None:
                return result
        return []

    def _scan_full_text(self, text: str, period: StatementPeriod) -> list[ExtractedTransaction]:
        """Find rows anywhere in the text, ignoring line boundaries.

        Used for short documents where rows were glued together mid-line or
        split across page breaks.
        """
        context = LineContext(lines=[], period=period)
        found: list[ExtractedTransaction] = []
        for match in self.CROSS_PAGE_ROW.finditer(text):
            month, day, description, columns = match.groups()
            description = re.sub(r"\s+", " ", description).strip()
            if len(description) <= 3 or not is_valid_transaction_description(description):
                continue
            try:
                amounts = [parse_amount(a) for a in columns.split()]
            except ValueError:
                continue
            row_date = self.dates.normalize(f"{month} {day}", period.reference_year, period=period)
            for amount, txn_type in self.classifier.classify(description, amounts, context):
                if not is_plausible(amount):
                    continue
                found.append(
                    ExtractedTransaction(
                        name=clean_description(description),
                        date=row_date,
                        amount=to_cents(amount),
                        type=txn_type,
                        raw_text=match.group(0).strip(),
                    )
                )
        if found:
            logger.info("Recovered transactions from full-text scan", extra={"count": len(found)})
        return found
