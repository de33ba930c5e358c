"""LLM-based transaction extraction with a provider fallback chain.

Providers are tried strictly in order (Mistral, Hugging Face, OpenAI), one
request at a time. A provider is skipped when not configured; a later one is
only called when the earlier attempt failed in a retryable way. The first
2xx answer ends the chain, and if its content cannot be decoded the whole
call fails with ParseError.
"""

import json
import logging
import re
from typing import Any

import httpx

from statement_extractor.config import ExtractionConfig, Settings, settings
from statement_extractor.core.exceptions import InputError, ParseError, ProviderError
from statement_extractor.llm.prompt import build_prompt
from statement_extractor.llm.providers import LLMProvider, default_providers, is_retryable
from statement_extractor.parsers.normalize import TransactionNormalizer
from statement_extractor.parsers.period import StatementPeriodResolver
from statement_extractor.schemas.internal import LLMExtractionResult, ProviderAttempt, StatementPeriod

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)

# Seconds a caller should wait for a cold model.
MODEL_LOADING_RETRY_AFTER = 15


def _balanced_span(text: str, start: int) -> str | None:
    """Return the balanced {...} or [...] span opening at `start`, ignoring brackets in strings."""
    stack: list[str] = []
    in_string = False
    escaped = False
    closing = {"{": "}", "[": "]"}
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in closing:
            stack.append(closing[ch])
        elif ch in "}]":
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return text[start : i + 1]
    return None


def parse_content(content: str) -> list[Any]:
    """Decode LLM output into a list of raw transaction items.

    Accepts {"transactions": [...]}, {"data": [...]} or a bare array,
    optionally wrapped in Markdown fences or surrounded by prose.

    Raises:
        ParseError: PARSE_001 for empty content, PARSE_002 when no
            transaction array can be decoded
    """
    if not content or not content.strip():
        raise ParseError("PARSE_001")

    cleaned = _FENCE.sub("", content).strip()
    # Prose around the JSON may carry brackets of its own; try each opening
    # bracket in turn until one decodes to a transaction array.
    for start, ch in enumerate(cleaned):
        if ch not in "{[":
            continue
        span = _balanced_span(cleaned, start)
        if span is None:
            continue
        try:
            items = _transaction_array(json.loads(span))
        except json.JSONDecodeError:
            continue
        if items is not None and all(isinstance(item, dict) for item in items):
            return items

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ParseError("PARSE_002", details=str(e)) from e
    items = _transaction_array(data)
    if items is None:
        raise ParseError("PARSE_002", details="Response contained no transaction array")
    return items


def _transaction_array(data: Any) -> list[Any] | None:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("transactions", "data"):
            if isinstance(data.get(key), list):
                return data[key]
    return None


class LLMExtractor:
    """Extract transactions by prompting a chain of LLM providers.

    Example:
        >>> extractor = LLMExtractor()
        >>> result = await extractor.extract(text, "Dec 8, 2024 - Jan 7, 2025")
        >>> result.used_provider
        'mistral'
    """

    def __init__(
        self,
        config: Settings | None = None,
        providers: list[LLMProvider] | None = None,
        normalizer: TransactionNormalizer | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the extractor.

        Args:
            config: Application settings (keys, models, endpoints)
            providers: Ordered provider chain; defaults to Mistral, Hugging Face, OpenAI
            normalizer: Maps decoded items to transactions
            client: Shared HTTP client; a short-lived one is created per call if omitted
        """
        self.config = config or settings
        self.providers = providers if providers is not None else default_providers(self.config)
        self.normalizer = normalizer or TransactionNormalizer(ExtractionConfig.from_settings(self.config))
        self.client = client

    def configured_providers(self) -> list[LLMProvider]:
        return [p for p in self.providers if p.is_configured()]

    async def extract(
        self,
        text: str,
        statement_period: str | None = None,
        *,
        period: StatementPeriod | None = None,
        timeout: float | None = None,
    ) -> LLMExtractionResult:
        """Run the provider chain and decode the first successful answer.

        Args:
            text: Statement text
            statement_period: Free-text billing period passed to the prompt
            period: Resolved period for year inference; resolved from
                `statement_period` or the text when omitted
            timeout: Per-request deadline in seconds (LLM_TIMEOUT_SECONDS if omitted)

        Returns:
            LLMExtractionResult with candidate transactions and the provider used

        Raises:
            InputError: PREFER_OPENAI set without an OpenAI key
            ProviderError: no provider configured, or the chain was exhausted
            ParseError: a provider answered but its content is unusable
        """
        providers = self.configured_providers()
        if not providers:
            if self.config.prefer_openai:
                raise InputError("INPUT_003")
            raise ProviderError("LLM_007", http_status=503)

        if period is None:
            period = self._resolve_period(text, statement_period)

        prompt = build_prompt(text, statement_period)
        if self.client is not None:
            provider, attempt, attempts = await self._run_chain(self.client, providers, prompt, timeout)
        else:
            async with httpx.AsyncClient() as client:
                provider, attempt, attempts = await self._run_chain(client, providers, prompt, timeout)

        items = parse_content(attempt.content or "")
        transactions = self.normalizer.from_llm_items(items, period)
        logger.info(
            "LLM extraction succeeded",
            extra={
                "provider": provider.name,
                "attempts": len(attempts),
                "items": len(items),
                "transactions": len(transactions),
            },
        )
        return LLMExtractionResult(
            transactions=transactions, used_provider=provider.name, attempts=attempts
        )

    async def _run_chain(
        self,
        client: httpx.AsyncClient,
        providers: list[LLMProvider],
        prompt: str,
        timeout: float | None,
    ) -> tuple[LLMProvider, ProviderAttempt, list[ProviderAttempt]]:
        attempts: list[ProviderAttempt] = []
        for provider in providers:
            attempt = await provider.call(client, prompt, timeout)
            attempts.append(attempt)
            if attempt.succeeded:
                return provider, attempt, attempts

            retryable = is_retryable(attempt)
            logger.warning(
                "LLM provider attempt failed",
                extra={
                    "provider": provider.name,
                    "status": attempt.http_status,
                    "retryable": retryable,
                },
            )
            if not retryable:
                break

        raise self._translate_failure(attempts)

    @staticmethod
    def _translate_failure(attempts: list[ProviderAttempt]) -> ProviderError:
        """Turn the final failed attempt into an actionable error."""
        last = attempts[-1]
        detail = last.error_detail or ""
        details = last.body if last.body is not None else ({"message": detail} if detail else None)

        if len(attempts) > 1 and last.provider_name == "openai":
            return ProviderError("LLM_005", details=details, http_status=503)
        if last.http_status == 410:
            return ProviderError("LLM_003", details=details, http_status=503)
        if last.http_status == 404:
            return ProviderError("LLM_004", details=details, http_status=503)
        if "loading" in detail or "Model" in detail:
            return ProviderError(
                "LLM_002",
                details=details,
                http_status=503,
                retry_after=MODEL_LOADING_RETRY_AFTER,
            )
        if last.http_status == 429 or "rate" in detail:
            return ProviderError("LLM_001", details=details, http_status=429)
        return ProviderError("LLM_006", details=details, http_status=503)

    def _resolve_period(self, text: str, statement_period: str | None) -> StatementPeriod:
        resolver = StatementPeriodResolver(date_normalizer=self.normalizer.dates)
        default_year = self.normalizer.config.reference_date.year
        if statement_period:
            period = resolver.resolve(statement_period, default_year)
            if period.is_resolved:
                return period
        return resolver.resolve(text, default_year)
