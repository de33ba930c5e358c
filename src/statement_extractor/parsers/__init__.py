"""Local transaction extraction for statement text.

This module provides the offline building blocks of the engine:
- DateNormalizer and StatementPeriodResolver handle dates and years
- PatternExtractor turns statement text into transactions with line heuristics
- TransactionNormalizer runs the final pass shared with the LLM path
"""

from statement_extractor.parsers.dates import DateNormalizer
from statement_extractor.parsers.normalize import TransactionNormalizer
from statement_extractor.parsers.pattern import PatternExtractor
from statement_extractor.parsers.period import StatementPeriodResolver, YearCorrection
from statement_extractor.parsers.pdf_text import PDFTextExtractor
from statement_extractor.parsers.validation import is_valid_transaction_description

__all__ = [
    "DateNormalizer",
    "PatternExtractor",
    "PDFTextExtractor",
    "StatementPeriodResolver",
    "TransactionNormalizer",
    "YearCorrection",
    "is_valid_transaction_description",
]
