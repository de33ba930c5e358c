"""Deterministic category hints for extracted transactions.

Statements rarely carry a category. When INFER_CATEGORIES is enabled we
attach a keyword-based hint so the review screen can pre-fill one; the hint
is never authoritative and is skipped when the extractor already supplied a
category.
"""

from __future__ import annotations

import re

CATEGORIES: set[str] = {
    "Salary",
    "Transportation",
    "Food",
    "Subscription",
    "Rent",
    "Entertainment",
    "Miscellaneous",
}

DEFAULT_CATEGORY = "Miscellaneous"


def _norm(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").strip().upper())


# Ordering matters: earlier matches win.
_RULES: list[tuple[str, re.Pattern[str]]] = [
    ("Salary", re.compile(r"\bPAYROLL\b|\bSALARY\b|\bDIRECT\s+DEP(?:OSIT)?\b|\bPAY\s+DEPOSIT\b")),
    ("Rent", re.compile(r"\bRENT\b|\bLANDLORD\b|\bPROPERTY\s+MGMT\b|\bLEASE\b")),
    # Streaming before entertainment so "NETFLIX" is a subscription, not a night out.
    (
        "Subscription",
        re.compile(
            r"\bNETFLIX\b|\bSPOTIFY\b|\bDISNEY\s*PLUS\b|\bAPPLE\.COM/BILL\b|\bAPPLE\s+SERVICES\b"
            r"|\bYOUTUBE\s*PREMIUM\b|\bPRIME\s+VIDEO\b|\bSUBSCRIPTION\b|\bMEMBERSHIP\b"
        ),
    ),
    # Food delivery before transportation: "UBER CANADA/UBEREATS" is a meal, not a ride.
    (
        "Food",
        re.compile(
            r"\bUBER\s*EATS\b|\bUBEREATS\b|\bDOORDASH\b|\bSKIP\s*THE\s*DISHES\b|\bSTARBUCKS\b"
            r"|\bTIM\s+HORTONS\b|\bMCDONALD'?S\b|\bRESTAURANT\b|\bCAFE\b|\bPIZZA\b|\bGROCERY\b"
            r"|\bLOBLAWS\b|\bSOBEYS\b|\bMETRO\b|\bCOSTCO\b|\bWALMART\b|\bFOODS?\b"
        ),
    ),
    (
        "Transportation",
        re.compile(
            r"\bUBER\b(?!\s*EATS)|\bLYFT\b|\bPRESTO\b|\bTRANSIT\b|\bPARKING\b|\bPETRO\b|\bSHELL\b"
            r"|\bESSO\b|\bFUEL\b|\bGAS\s+STATION\b|\bAIR\s+CANADA\b|\bAIRLINE\b|\bTAXI\b"
        ),
    ),
    (
        "Entertainment",
        re.compile(r"\bCINEPLEX\b|\bCINEMA\b|\bTHEATRE\b|\bTHEATER\b|\bTICKETMASTER\b|\bSTEAM\b|\bXBOX\b|\bPLAYSTATION\b"),
    ),
]


def categorize(description: str | None, transaction_type: str | None = None) -> str:
    """Infer a category hint from the transaction description.

    Args:
        description: Cleaned transaction description.
        transaction_type: "income" or "expense" when available.

    Returns:
        Category name from CATEGORIES.
    """

    text = _norm(description or "")
    if not text:
        return DEFAULT_CATEGORY

    for category, pattern in _RULES:
        if pattern.search(text):
            return category

    # Unrecognised inflows are most often pay or transfers in.
    if (transaction_type or "").strip().lower() == "income" and re.search(r"\bDEPOSIT\b", text):
        return "Salary"

    return DEFAULT_CATEGORY
