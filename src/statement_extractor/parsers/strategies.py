"""Line-level extraction strategies for the pattern extractor.

Each strategy implements `try_extract(line, context)` and returns:
    - None: the line does not have the shape this strategy handles
    - []:   the line has the shape but was rejected (noise, bad description)
    - a list of transactions extracted from the line

The pattern extractor evaluates strategies in a fixed order and stops at the
first one that does not return None.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from statement_extractor.parsers.amounts import is_plausible, parse_amount, to_cents
from statement_extractor.parsers.dates import MONTH_TOKEN, DateNormalizer
from statement_extractor.parsers.validation import clean_description, is_valid_transaction_description
from statement_extractor.schemas.internal import StatementPeriod
from statement_extractor.schemas.transaction import ExtractedTransaction

TransactionType = Literal["income", "expense"]

COLUMN_AMOUNT = r"-?\$?(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}"

# Descriptions that indicate money coming in when the column layout is ambiguous.
INFLOW_KEYWORDS = (
    "deposit",
    "payroll",
    "salary",
    "refund",
    "reversal",
    "rebate",
    "cashback",
    "interest earned",
    "transfer from",
    "payment received",
    "thank you",
)

# Balances within this tolerance are treated as reconciled.
BALANCE_TOLERANCE = Decimal("0.005")


@dataclass
class LineContext:
    """Scan state shared by strategies while walking one statement."""

    lines: list[str]
    period: StatementPeriod
    index: int = 0
    last_balance: Decimal | None = None

    def neighbours(self, before: int = 2, after: int = 2) -> list[str]:
        """Nearby lines, nearest first: previous lines, then following lines."""
        prev = [self.lines[j] for j in range(self.index - 1, max(-1, self.index - before - 1), -1)]
        nxt = [self.lines[j] for j in range(self.index + 1, min(len(self.lines), self.index + after + 1))]
        return prev + nxt

    def next_line(self) -> str | None:
        if self.index + 1 < len(self.lines):
            return self.lines[self.index + 1]
        return None


@dataclass
class ColumnClassifier:
    """Map trailing amount columns to (amount, type) pairs.

    Column order on bank statements is withdrawal, deposit, balance. When
    fewer columns survive text extraction the direction is inferred from the
    running balance, then from inflow keywords, and defaults to expense. A
    signed amount column is a credit.
    """

    inflow_keywords: tuple[str, ...] = field(default=INFLOW_KEYWORDS)

    def classify(
        self,
        description: str,
        amounts: list[Decimal],
        context: LineContext,
    ) -> list[tuple[Decimal, TransactionType]]:
        if len(amounts) >= 3:
            withdrawal, deposit, balance = amounts[-3:]
            context.last_balance = balance
            out: list[tuple[Decimal, TransactionType]] = []
            if withdrawal > 0:
                out.append((withdrawal, "expense"))
            if deposit > 0:
                out.append((deposit, "income"))
            return out

        if len(amounts) == 2:
            amount, balance = amounts
            direction = self._from_balance(amount, balance, context.last_balance)
            context.last_balance = balance
            if amount < 0:
                return [(-amount, "income")]
            return [(amount, direction or self._from_keywords(description))]

        if len(amounts) == 1:
            if amounts[0] < 0:
                return [(-amounts[0], "income")]
            return [(amounts[0], self._from_keywords(description))]

        return []

    @staticmethod
    def _from_balance(
        amount: Decimal, balance: Decimal, previous: Decimal | None
    ) -> TransactionType | None:
        if previous is None:
            return None
        if abs(previous + amount - balance) < BALANCE_TOLERANCE:
            return "income"
        if abs(previous - amount - balance) < BALANCE_TOLERANCE:
            return "expense"
        return None

    def _from_keywords(self, description: str) -> TransactionType:
        lowered = description.lower()
        if any(keyword in lowered for keyword in self.inflow_keywords):
            return "income"
        return "expense"


class TableRowStrategy:
    """Rows shaped `<Mon> <Day> [<Mon> <Day>] <description> <amount>{1,3}`.

    Examples:
        "Dec 18 MB-Transfer to Credit Card 313.10 6,977.93"
        "Dec 07 Dec 08 UBER CANADA/UBEREATS TORONTO ON 40.91"

    When two dates lead the row (transaction date, posting date) the posting
    date wins.
    """

    ROW_PATTERN = re.compile(
        rf"^({MONTH_TOKEN})\s+(\d{{1,2}})(?:,?\s+(\d{{4}}))?"
        rf"(?:\s+({MONTH_TOKEN})\s+(\d{{1,2}}))?"
        rf"\s+(.+?)((?:\s+{COLUMN_AMOUNT}){{1,3}})\s*$",
        re.IGNORECASE,
    )
    EMBEDDED_AMOUNT = re.compile(COLUMN_AMOUNT)
    # Digits after the day only count as a year when this close to the statement year.
    MAX_YEAR_DISTANCE = 1

    def __init__(
        self,
        date_normalizer: DateNormalizer | None = None,
        classifier: ColumnClassifier | None = None,
    ):
        self.dates = date_normalizer or DateNormalizer()
        self.classifier = classifier or ColumnClassifier()

    def try_extract(self, line: str, context: LineContext) -> list[ExtractedTransaction] | None:
        match = self.ROW_PATTERN.match(line.strip())
        if not match:
            return None

        month, day, year, post_month, post_day, rest, columns = match.groups()
        if year and abs(int(year) - context.period.reference_year) > self.MAX_YEAR_DISTANCE:
            rest = f"{year} {rest}"
            year = None
        description = self.EMBEDDED_AMOUNT.sub("", rest)
        description = re.sub(r"\s+", " ", description).strip()
        if not is_valid_transaction_description(description):
            return []

        amounts = [parse_amount(a) for a in columns.split()]
        if post_month and post_day:
            month, day = post_month, post_day
        token = f"{month} {day}, {year}" if year else f"{month} {day}"
        row_date = self.dates.normalize(token, context.period.reference_year, period=context.period)

        return [
            ExtractedTransaction(
                name=clean_description(description),
                date=row_date,
                amount=to_cents(amount),
                type=txn_type,
                raw_text=line.strip(),
            )
            for amount, txn_type in self.classifier.classify(description, amounts, context)
            if is_plausible(amount) and to_cents(amount) >= 1
        ]


class GenericLineStrategy:
    """Any line carrying a date token and a plausible amount.

    The rightmost plausible amount is taken as the transaction amount. A
    missing date is borrowed from up to two lines around the current one; a
    missing description is borrowed from the next line.
    """

    AMOUNT_PATTERN = re.compile(
        r"(?<![\w.,])(?P<open>\()?(?P<sign>[+-])?\s?(?P<currency>[$€£¥])?\s?"
        r"(?P<number>\d{1,3}(?:,\d{3})+|\d+)\.(?P<cents>\d{2})(?!\d)(?P<close>\))?"
        r"(?:\s*(?P<crdr>CR|DR)\b)?",
        re.IGNORECASE,
    )
    CRDR_PATTERN = re.compile(r"(?i)^(CR|DR)\s*|\s*(CR|DR)$")
    DATE_PREFIX = re.compile(r"^\d+[/\-.]")
    MAX_BORROWED_LENGTH = 100

    def __init__(self, date_normalizer: DateNormalizer | None = None):
        self.dates = date_normalizer or DateNormalizer()

    def try_extract(self, line: str, context: LineContext) -> list[ExtractedTransaction] | None:
        line = line.strip()
        amount_matches = list(self.AMOUNT_PATTERN.finditer(line))
        chosen = self._rightmost_plausible(amount_matches)
        if chosen is None:
            return None
        amount, is_credit = chosen

        date_match = self.dates.find_date_token(line)
        date_text = date_match.group(0) if date_match else self._borrow_date(context)
        if date_text is None:
            return []

        description = line
        if date_match:
            description = description[: date_match.start()] + " " + description[date_match.end() :]
        description = self.AMOUNT_PATTERN.sub(" ", description)
        description = re.sub(r"\s+", " ", description).strip()
        description = self.CRDR_PATTERN.sub("", description).strip()

        if len(description) < 3 or description.isdigit():
            borrowed = self._borrow_description(context)
            if borrowed:
                description = borrowed

        if not is_valid_transaction_description(description):
            return []

        return [
            ExtractedTransaction(
                name=clean_description(description),
                date=self.dates.normalize(date_text, context.period.reference_year, period=context.period),
                amount=to_cents(amount),
                type="income" if is_credit else "expense",
                raw_text=line,
            )
        ]

    def _rightmost_plausible(self, matches: list[re.Match]) -> tuple[Decimal, bool] | None:
        for match in reversed(matches):
            value = Decimal(f"{match.group('number').replace(',', '')}.{match.group('cents')}")
            negative = match.group("sign") == "-" or bool(match.group("open") and match.group("close"))
            if negative:
                value = -value
            if not is_plausible(value):
                continue
            crdr = (match.group("crdr") or "").upper()
            return value, crdr == "CR" or value < 0
        return None

    def _borrow_date(self, context: LineContext) -> str | None:
        for neighbour in context.neighbours():
            match = self.dates.find_date_token(neighbour)
            if match:
                return match.group(0)
        return None

    def _borrow_description(self, context: LineContext) -> str | None:
        nxt = context.next_line()
        if nxt is None:
            return None
        nxt = nxt.strip()
        # A next line carrying its own amount is a transaction, not a continuation.
        if self.AMOUNT_PATTERN.search(nxt):
            return None
        if len(nxt) > 3 and not self.DATE_PREFIX.match(nxt):
            return nxt[: self.MAX_BORROWED_LENGTH].strip()
        return None
