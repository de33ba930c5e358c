"""Tests for LLM provider clients and response shape decoding."""

import json

import httpx
import pytest

from statement_extractor.llm.providers import (
    ChatCompletionShape,
    GeneratedTextShape,
    HuggingFaceProvider,
    MistralProvider,
    OpenAIProvider,
    PlainStringShape,
    decode_shape,
    default_providers,
    error_text,
    is_retryable,
)
from statement_extractor.schemas.internal import ProviderAttempt


def _chat(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestDecodeShape:
    def test_chat_completion(self):
        assert decode_shape(_chat("[]")) == ChatCompletionShape("[]")

    def test_generated_text_list(self):
        assert decode_shape([{"generated_text": "[]"}]) == GeneratedTextShape("[]")

    def test_generated_text_object(self):
        assert decode_shape({"generated_text": "[]"}) == GeneratedTextShape("[]")

    def test_plain_string(self):
        assert decode_shape("[]") == PlainStringShape("[]")

    def test_unknown_shape_is_serialized(self):
        shape = decode_shape({"transactions": []})

        assert isinstance(shape, PlainStringShape)
        assert json.loads(shape.text) == {"transactions": []}

    def test_empty_chat_content_is_not_a_chat_shape(self):
        assert isinstance(decode_shape(_chat("")), PlainStringShape)


class TestErrorText:
    def test_string_error(self):
        assert error_text({"error": "Model is loading"}) == "Model is loading"

    def test_nested_error_message(self):
        assert error_text({"error": {"message": "Rate limit reached"}}) == "Rate limit reached"

    def test_message_field(self):
        assert error_text({"message": "HTTP 502: Bad Gateway"}) == "HTTP 502: Bad Gateway"

    def test_non_dict_bodies(self):
        assert error_text("oops") == "oops"
        assert error_text(None) == ""
        assert error_text([1, 2]) == "[1, 2]"


class TestIsRetryable:
    def _failed(self, status, detail=""):
        return ProviderAttempt(provider_name="mistral", succeeded=False, http_status=status, error_detail=detail)

    @pytest.mark.parametrize("status", [None, 404, 410, 429, 503])
    def test_retryable_statuses(self, status):
        assert is_retryable(self._failed(status))

    @pytest.mark.parametrize(
        "detail",
        ["Model is loading", "rate limit exceeded", "endpoint is no longer supported", "error 404 upstream"],
    )
    def test_retryable_markers(self, detail):
        assert is_retryable(self._failed(500, detail))

    @pytest.mark.parametrize("status", [400, 401, 500])
    def test_terminal_failures(self, status):
        assert not is_retryable(self._failed(status, "invalid api key"))

    def test_success_is_never_retryable(self):
        assert not is_retryable(ProviderAttempt(provider_name="openai", succeeded=True, http_status=200))


class TestIsConfigured:
    def test_no_keys(self, make_settings):
        config = make_settings()

        assert not MistralProvider(config).is_configured()
        assert HuggingFaceProvider(config).is_configured()
        assert not OpenAIProvider(config).is_configured()

    def test_prefer_openai_skips_hugging_face(self, make_settings):
        config = make_settings(prefer_openai=True, openai_api_key="sk-test")

        assert not HuggingFaceProvider(config).is_configured()
        assert OpenAIProvider(config).is_configured()

    def test_hugging_face_can_be_disabled(self, make_settings):
        assert not HuggingFaceProvider(make_settings(huggingface_enabled=False)).is_configured()

    def test_default_order(self, make_settings):
        assert [p.name for p in default_providers(make_settings())] == ["mistral", "huggingface", "openai"]


class TestProviderCalls:
    async def test_mistral_success(self, make_settings):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_chat('{"transactions": []}'))

        config = make_settings(mistral_api_key="mk-test")
        async with _client(handler) as client:
            attempt = await MistralProvider(config).call(client, "prompt")

        assert attempt.succeeded
        assert attempt.provider_name == "mistral"
        assert attempt.content == '{"transactions": []}'
        assert str(seen[0].url) == config.mistral_url
        assert seen[0].headers["Authorization"] == "Bearer mk-test"
        body = json.loads(seen[0].content)
        assert body["messages"] == [{"role": "user", "content": "prompt"}]
        assert body["model"] == config.mistral_model

    async def test_network_error_is_reported_not_raised(self, make_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            attempt = await MistralProvider(make_settings(mistral_api_key="mk-test")).call(client, "prompt")

        assert not attempt.succeeded
        assert attempt.http_status is None
        assert "connection refused" in attempt.error_detail

    async def test_non_json_error_body(self, make_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        async with _client(handler) as client:
            attempt = await MistralProvider(make_settings(mistral_api_key="mk-test")).call(client, "prompt")

        assert attempt.http_status == 502
        assert attempt.error_detail == "HTTP 502: Bad Gateway"

    async def test_hugging_face_falls_back_to_legacy_endpoint(self, make_settings):
        urls = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(str(request.url))
            if "router.huggingface.co" in str(request.url):
                return httpx.Response(410, json={"error": "endpoint is no longer supported"})
            return httpx.Response(200, json=[{"generated_text": "[]"}])

        config = make_settings()
        async with _client(handler) as client:
            attempt = await HuggingFaceProvider(config).call(client, "prompt")

        assert attempt.succeeded
        assert attempt.content == "[]"
        assert urls == [
            f"{config.huggingface_router_url}/{config.huggingface_model}",
            f"{config.huggingface_legacy_url}/{config.huggingface_model}",
        ]

    async def test_hugging_face_auth_header_only_with_key(self, make_settings):
        headers = []

        def handler(request: httpx.Request) -> httpx.Response:
            headers.append(request.headers.get("Authorization"))
            body = json.loads(request.content)
            assert body["parameters"]["return_full_text"] is False
            return httpx.Response(200, json=[{"generated_text": "[]"}])

        async with _client(handler) as client:
            await HuggingFaceProvider(make_settings()).call(client, "prompt")
            await HuggingFaceProvider(make_settings(huggingface_api_key="hf-test")).call(client, "prompt")

        assert headers == [None, "Bearer hf-test"]

    async def test_openai_sends_system_message(self, make_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert [m["role"] for m in body["messages"]] == ["system", "user"]
            return httpx.Response(200, json=_chat("[]"))

        async with _client(handler) as client:
            attempt = await OpenAIProvider(make_settings(openai_api_key="sk-test")).call(client, "prompt")

        assert attempt.succeeded
        assert attempt.content == "[]"

    def test_openai_ignores_non_chat_bodies(self, make_settings):
        provider = OpenAIProvider(make_settings(openai_api_key="sk-test"))

        assert provider.content_from([{"generated_text": "[]"}]) == ""
