"""Description validation, cleanup and deduplication.

The validator only rejects descriptions that are clearly statement metadata
(balances, totals, account numbers) or noise; anything else passes through
to the review step.
"""

import re
from collections.abc import Iterable

from statement_extractor.schemas.transaction import MAX_NAME_LENGTH, ExtractedTransaction

UNKNOWN_NAME = "Unknown Transaction"

BALANCE_PHRASES = (
    "opening balance",
    "closing balance",
    "previous balance",
    "new balance",
    "available balance",
)

METADATA_PHRASES = (
    "account #",
    "account number",
    "statement period",
    "statement date",
)

_NUMERIC_ONLY = re.compile(r"^\d+$")
_LEADING_REFERENCE = re.compile(r"^\d{8,}\s+")
_WHITESPACE = re.compile(r"\s+")


def is_valid_transaction_description(text: str | None) -> bool:
    """Decide whether a description looks like a real transaction.

    Args:
        text: Candidate description

    Returns:
        False for balances, totals, account/statement metadata, strings
        shorter than 3 characters, and purely numeric strings
    """
    if text is None:
        return False
    details = str(text).strip().lower()

    if len(details) < 3 or _NUMERIC_ONLY.match(details):
        return False

    if any(phrase in details for phrase in BALANCE_PHRASES):
        return False

    if "total" in details and ("amount" in details or "balance" in details):
        return False

    if any(phrase in details for phrase in METADATA_PHRASES):
        return False

    return True


def clean_description(text: str | None) -> str:
    """Tidy a description for display.

    Strips a leading run of 8+ digits (reference numbers some statements
    print before the merchant), collapses whitespace and caps the length.
    """
    details = _WHITESPACE.sub(" ", str(text or "")).strip()
    details = _LEADING_REFERENCE.sub("", details).strip()
    return details[:MAX_NAME_LENGTH].strip() or UNKNOWN_NAME


def deduplicate(transactions: Iterable[ExtractedTransaction]) -> list[ExtractedTransaction]:
    """Collapse records sharing (name, date, amount), keeping the first."""
    seen: set[tuple[str, str, int]] = set()
    uniq: list[ExtractedTransaction] = []
    for txn in transactions:
        key = txn.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        uniq.append(txn)
    return uniq
