"""Amount parsing helpers shared by the pattern and LLM paths."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# Upper bound for a single plausible transaction amount.
MAX_AMOUNT = Decimal("1000000")
MIN_AMOUNT = Decimal("0.01")


def parse_amount(text: str | int | float | Decimal) -> Decimal:
    """Parse a signed amount from text.

    Handles:
        - $1,234.56 / €99.99 (currency symbols, thousands separators)
        - -40.91 and (40.91) (negative forms)
        - 40.91 CR / 40.91 DR (suffixes are stripped, not interpreted)

    Args:
        text: Amount string or number

    Returns:
        Amount as Decimal, negative when written as negative

    Raises:
        ValueError: If the amount cannot be parsed
    """
    if isinstance(text, bool):
        raise ValueError(f"Could not parse amount: {text}")
    if isinstance(text, (int, float, Decimal)):
        value = Decimal(str(text))
        if not value.is_finite():
            raise ValueError(f"Could not parse amount: {text}")
        return value

    raw = str(text).strip()
    raw = re.sub(r"(?i)\b(cr|dr)\b", "", raw).strip()

    negative = False
    if raw.startswith("(") and raw.endswith(")"):
        negative = True
        raw = raw[1:-1].strip()
    if raw.endswith("-"):
        negative = True
        raw = raw[:-1].strip()
    if raw.startswith("-"):
        negative = True
        raw = raw[1:].strip()
    elif raw.startswith("+"):
        raw = raw[1:].strip()

    cleaned = re.sub(r"[$€£¥₹\s]", "", raw).replace(",", "")
    if cleaned.startswith("-"):
        negative = True
        cleaned = cleaned[1:]

    try:
        value = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount: {text}") from e
    if not value.is_finite():
        raise ValueError(f"Could not parse amount: {text}")
    return -value if negative else value


def to_cents(amount: Decimal) -> int:
    """Absolute amount in cents, rounded half-up (40.905 -> 4091)."""
    return int((abs(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_plausible(amount: Decimal) -> bool:
    """True for magnitudes a single statement row can realistically carry."""
    return MIN_AMOUNT <= abs(amount) < MAX_AMOUNT
