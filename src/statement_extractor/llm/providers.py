"""LLM provider clients for transaction extraction.

Each provider knows whether it is configured, how to call its endpoint and
how to pull the generated text out of its response body. A call never
raises: it returns a ProviderAttempt describing success or failure, so the
extractor can walk the fallback chain as a plain sequence.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from statement_extractor.config import Settings
from statement_extractor.llm.prompt import SYSTEM_MESSAGE
from statement_extractor.schemas.internal import ProviderAttempt, ProviderName

logger = logging.getLogger(__name__)

# Failures that justify moving on to the next provider.
RETRYABLE_STATUSES = {404, 410, 429, 503}
RETRYABLE_MARKERS = ("loading", "Model", "rate", "no longer supported")


@dataclass(frozen=True)
class ChatCompletionShape:
    """OpenAI-compatible body: choices[0].message.content."""

    content: str


@dataclass(frozen=True)
class GeneratedTextShape:
    """Hugging Face text generation body: [{"generated_text": ...}]."""

    text: str


@dataclass(frozen=True)
class PlainStringShape:
    """A bare string body (or anything else, serialized to JSON)."""

    text: str


ResponseShape = ChatCompletionShape | GeneratedTextShape | PlainStringShape


def decode_shape(body: Any) -> ResponseShape:
    """Classify a decoded response body into one of the known shapes."""
    if isinstance(body, dict):
        choices = body.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str) and content:
                return ChatCompletionShape(content)
        if isinstance(body.get("generated_text"), str):
            return GeneratedTextShape(body["generated_text"])
    if isinstance(body, list) and body and isinstance(body[0], dict):
        if isinstance(body[0].get("generated_text"), str):
            return GeneratedTextShape(body[0]["generated_text"])
    if isinstance(body, str):
        return PlainStringShape(body)
    return PlainStringShape(json.dumps(body))


def shape_text(shape: ResponseShape) -> str:
    if isinstance(shape, ChatCompletionShape):
        return shape.content
    return shape.text


def error_text(body: Any) -> str:
    """Flatten a provider error body into one searchable string."""
    if isinstance(body, str):
        return body
    if not isinstance(body, dict):
        return json.dumps(body) if body is not None else ""

    parts: list[str] = []
    error = body.get("error")
    if isinstance(error, str):
        parts.append(error)
    elif isinstance(error, dict) and isinstance(error.get("message"), str):
        parts.append(error["message"])
    if isinstance(body.get("message"), str):
        parts.append(body["message"])
    return " ".join(parts)


def is_retryable(attempt: ProviderAttempt) -> bool:
    """Whether a failed attempt should advance the chain to the next provider.

    Network errors count as retryable, as do 404/410/429/503 responses and
    bodies that mention a loading model, a rate limit or a retired endpoint.
    """
    if attempt.succeeded:
        return False
    if attempt.http_status is None:
        return True
    if attempt.http_status in RETRYABLE_STATUSES:
        return True
    detail = attempt.error_detail or ""
    if any(marker in detail for marker in RETRYABLE_MARKERS):
        return True
    return "404" in detail


class LLMProvider:
    """Base class for one entry in the provider fallback chain."""

    name: ProviderName

    def __init__(self, config: Settings):
        self.config = config

    def is_configured(self) -> bool:
        raise NotImplementedError

    async def call(
        self, client: httpx.AsyncClient, prompt: str, timeout: float | None = None
    ) -> ProviderAttempt:
        raise NotImplementedError

    def content_from(self, body: Any) -> str:
        return shape_text(decode_shape(body))

    async def _post(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict,
        headers: dict[str, str],
        timeout: float | None,
    ) -> ProviderAttempt:
        try:
            response = await client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json", **headers},
                timeout=timeout if timeout is not None else self.config.llm_timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.warning(
                "LLM provider request failed",
                extra={"provider": self.name, "error": type(e).__name__},
            )
            return ProviderAttempt(
                provider_name=self.name,
                succeeded=False,
                error_detail=str(e) or type(e).__name__,
            )

        body = _decode_body(response)
        if not response.is_success:
            return ProviderAttempt(
                provider_name=self.name,
                succeeded=False,
                http_status=response.status_code,
                error_detail=error_text(body),
                body=body,
            )

        return ProviderAttempt(
            provider_name=self.name,
            succeeded=True,
            http_status=response.status_code,
            body=body,
            content=self.content_from(body),
        )


class MistralProvider(LLMProvider):
    """Mistral La Plateforme chat completions."""

    name: ProviderName = "mistral"

    def is_configured(self) -> bool:
        return bool(self.config.mistral_api_key)

    async def call(
        self, client: httpx.AsyncClient, prompt: str, timeout: float | None = None
    ) -> ProviderAttempt:
        payload = {
            "model": self.config.mistral_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.llm_temperature,
            "max_tokens": self.config.llm_max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.config.mistral_api_key}"}
        return await self._post(client, self.config.mistral_url, payload, headers, timeout)


class HuggingFaceProvider(LLMProvider):
    """Hugging Face hosted inference; the API key only raises rate limits."""

    name: ProviderName = "huggingface"

    # Router answers these when a model is not served there; retry on the legacy host.
    LEGACY_FALLBACK_STATUSES = {404, 410}

    def is_configured(self) -> bool:
        return self.config.huggingface_enabled and not self.config.prefer_openai

    async def call(
        self, client: httpx.AsyncClient, prompt: str, timeout: float | None = None
    ) -> ProviderAttempt:
        payload = {
            "inputs": prompt,
            "parameters": {
                "temperature": self.config.llm_temperature,
                "max_new_tokens": self.config.llm_max_tokens,
                "return_full_text": False,
            },
        }
        headers = {}
        if self.config.huggingface_api_key:
            headers["Authorization"] = f"Bearer {self.config.huggingface_api_key}"

        model = self.config.huggingface_model
        attempt = await self._post(
            client, f"{self.config.huggingface_router_url}/{model}", payload, headers, timeout
        )
        if attempt.http_status in self.LEGACY_FALLBACK_STATUSES:
            logger.info("Hugging Face router unavailable, trying legacy endpoint")
            attempt = await self._post(
                client, f"{self.config.huggingface_legacy_url}/{model}", payload, headers, timeout
            )
        return attempt


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions, used when forced or as the last fallback."""

    name: ProviderName = "openai"

    def is_configured(self) -> bool:
        return bool(self.config.openai_api_key)

    async def call(
        self, client: httpx.AsyncClient, prompt: str, timeout: float | None = None
    ) -> ProviderAttempt:
        payload = {
            "model": self.config.openai_model,
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.config.llm_temperature,
            "max_tokens": self.config.llm_max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.config.openai_api_key}"}
        return await self._post(client, self.config.openai_url, payload, headers, timeout)

    def content_from(self, body: Any) -> str:
        shape = decode_shape(body)
        return shape.content if isinstance(shape, ChatCompletionShape) else ""


def default_providers(config: Settings) -> list[LLMProvider]:
    """Providers in priority order: Mistral, Hugging Face, OpenAI."""
    return [MistralProvider(config), HuggingFaceProvider(config), OpenAIProvider(config)]


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        if response.is_success:
            return response.text
        return {"message": f"HTTP {response.status_code}: {response.reason_phrase}"}
