"""Prompt construction for LLM-based transaction extraction."""

import json

SYSTEM_MESSAGE = (
    "You extract financial transactions from statement text. Always answer with a "
    "single JSON object holding a 'transactions' array. No markdown, no explanations."
)

EXAMPLE_OUTPUT = {
    "transactions": [
        {
            "ref_number": "001",
            "transaction_date": "2024-12-07",
            "post_date": "2024-12-08",
            "details": "UBER CANADA/UBEREATS TORONTO ON",
            "amount": 40.91,
        },
        {
            "ref_number": "002",
            "transaction_date": "2024-12-18",
            "post_date": "2024-12-19",
            "details": "PAYMENT FROM - *****29*8226",
            "amount": -313.10,
        },
    ],
    "summary": {},
}

INSTRUCTIONS = """You are given raw text converted from a credit card or bank statement PDF.
List every transaction it contains as JSON.

Reading the text:
- Read ALL pages. Statements continue after "Page 1"; keep going until the text ends.
- Expect headers, footers, disclaimers, broken spacing and merged table cells.

Fields for each transaction row:
- ref_number: reference number, empty string when absent
- transaction_date: the first date on the row (when the purchase happened), YYYY-MM-DD
- post_date: the second date on the row (when it reached the account), YYYY-MM-DD
- details: merchant or description
- amount: number; positive for charges, debits and withdrawals,
  negative for credits, payments and deposits

Dates:
- post_date is the primary date. Use transaction_date only when no posting date exists.
- Statement period: {period}
- When a date has no year, take the year from the statement period.
- No date may fall after the statement end. A date that does was misread
  (for a period of "Dec 8, 2024 - Jan 7, 2025", "Dec 30, 2025" means "Dec 30, 2024"); correct it.

Rows to leave out:
- Opening, closing, previous, new or available balance lines
- Totals, subtotals, summaries, interest information
- Statement period or statement date lines, account numbers, headers
- Rows whose description is empty, only a number, or a code with no context

Keep only rows whose description names a merchant, a payment or transfer,
a deposit, or a place of business.

### Input:

{text}

### Output:

Return ONLY valid JSON, no markdown fences, no prose, in exactly this format:
{example}"""


def build_prompt(text: str, statement_period: str | None = None) -> str:
    """Render the full extraction prompt for one statement.

    Args:
        text: Statement text
        statement_period: Free-text billing period, if known

    Returns:
        Prompt string sent as the user message
    """
    return INSTRUCTIONS.format(
        period=statement_period or "Not specified",
        text=text,
        example=json.dumps(EXAMPLE_OUTPUT, indent=2),
    )
