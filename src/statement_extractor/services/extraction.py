"""Transaction extraction orchestration.

This module is the entry point of the engine:
1. Validate the request text
2. Resolve the statement period (caller string first, then the text)
3. Extract candidates with the pattern path, the LLM path, or both
4. Run the shared normalization pass
5. Report which method produced the result
"""

import logging
from enum import Enum

from statement_extractor.config import ExtractionConfig, Settings, settings
from statement_extractor.core.exceptions import ExtractionError, InputError
from statement_extractor.llm.extractor import LLMExtractor
from statement_extractor.parsers.dates import DateNormalizer
from statement_extractor.parsers.normalize import TransactionNormalizer
from statement_extractor.parsers.pattern import PatternExtractor, sort_newest_first
from statement_extractor.schemas.internal import ExtractionResult, StatementPeriod
from statement_extractor.schemas.transaction import ExtractedTransaction

logger = logging.getLogger(__name__)


class ExtractionMode(str, Enum):
    """Which extractor(s) to run."""

    PATTERN = "pattern"
    LLM = "llm"
    # LLM first; any LLM failure or an empty LLM result falls back to pattern.
    AUTO = "auto"


class ExtractionOrchestrator:
    """Choose an extraction path and normalize its output.

    States: START -> {PATTERN | LLM_MISTRAL -> LLM_HF -> LLM_OPENAI} ->
    NORMALIZE -> DONE. Only the LLM branch can end in FAILED; in auto mode
    that failure is absorbed by the pattern fallback.

    Example:
        >>> orchestrator = ExtractionOrchestrator(ExtractionConfig(reference_date=date.today()))
        >>> result = await orchestrator.extract(text, mode="pattern")
        >>> result.method
        'pattern'
    """

    def __init__(
        self,
        config: ExtractionConfig,
        app_settings: Settings | None = None,
        pattern_extractor: PatternExtractor | None = None,
        llm_extractor: LLMExtractor | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            config: Extraction knobs with the injected reference date
            app_settings: Provider and limit settings
            pattern_extractor: Local extractor (built from config if omitted)
            llm_extractor: LLM extractor (built from settings if omitted)
        """
        self.config = config
        self.settings = app_settings or settings
        dates = DateNormalizer()
        self.normalizer = TransactionNormalizer(config, date_normalizer=dates)
        self.pattern = pattern_extractor or PatternExtractor(
            reference_date=config.reference_date,
            resolver=self.normalizer.resolver,
            date_normalizer=dates,
        )
        self.llm = llm_extractor or LLMExtractor(self.settings, normalizer=self.normalizer)

    async def extract(
        self,
        text: str | None,
        statement_period: str | None = None,
        mode: ExtractionMode | str | None = None,
        timeout: float | None = None,
    ) -> ExtractionResult:
        """Extract, normalize and deduplicate transactions from statement text.

        Args:
            text: Statement text from the PDF-to-text step
            statement_period: Optional free-text billing period
            mode: pattern, llm or auto (EXTRACTION_MODE when omitted)
            timeout: Per-request deadline for LLM provider calls

        Returns:
            ExtractionResult with final transactions and the method used

        Raises:
            InputError: Missing/oversized text or unknown mode
            ProviderError, ParseError: LLM mode only
        """
        self._validate_text(text)
        selected = self._mode(mode)
        period = self.pattern.resolve_period(text, statement_period)

        logger.info(
            "Starting extraction",
            extra={
                "mode": selected.value,
                "text_length": len(text),
                "period_resolved": period.is_resolved,
            },
        )

        if selected is ExtractionMode.PATTERN:
            transactions = self._run_pattern(text, period)
            method = "pattern"
        elif selected is ExtractionMode.LLM:
            transactions, method = await self._run_llm(text, statement_period, period, timeout)
        else:
            try:
                transactions, method = await self._run_llm(text, statement_period, period, timeout)
            except ExtractionError as e:
                logger.warning(
                    "LLM extraction failed, falling back to pattern extraction",
                    extra={"error_code": e.error_code},
                )
                transactions, method = [], "pattern"
            if not transactions:
                transactions = self._run_pattern(text, period)
                method = "pattern"

        logger.info(
            "Extraction finished",
            extra={"method": method, "transactions": len(transactions)},
        )
        return ExtractionResult(transactions=transactions, method=method, statement_period=period)

    def _run_pattern(self, text: str, period: StatementPeriod) -> list[ExtractedTransaction]:
        candidates = self.pattern.extract(text, period)
        return sort_newest_first(self.normalizer.finalize(candidates, period))

    async def _run_llm(
        self,
        text: str,
        statement_period: str | None,
        period: StatementPeriod,
        timeout: float | None,
    ) -> tuple[list[ExtractedTransaction], str]:
        result = await self.llm.extract(text, statement_period, period=period, timeout=timeout)
        return self.normalizer.finalize(result.transactions, period), result.used_provider

    def _validate_text(self, text: str | None) -> None:
        if not isinstance(text, str) or not text.strip():
            raise InputError("INPUT_001")
        if len(text) > self.settings.max_text_chars:
            raise InputError(
                "INPUT_002",
                details={"max_chars": self.settings.max_text_chars, "received": len(text)},
            )

    def _mode(self, mode: ExtractionMode | str | None) -> ExtractionMode:
        try:
            return ExtractionMode(mode or self.settings.extraction_mode)
        except ValueError as e:
            raise InputError("INPUT_004", details={"mode": str(mode)}) from e
