"""Tests for LLM providers and provider errors."""

import json

import httpx
import pytest

from monames.config import ApiConfig
from monames.core import (
    AnthropicProvider, ConfigurationError, CustomProvider, MockProvider,
    OpenAIProvider, OpenRouterProvider, ProviderError, ProviderErrorKind,
    classify_status, create_provider,
)

MESSAGES = [
    {"role": "system", "content": "You are the Spymaster for the red team."},
    {"role": "user", "content": "Game state JSON:\n{}"},
]


@pytest.fixture
def transport(monkeypatch):
    """Route every httpx.AsyncClient through a scripted handler."""
    calls: list[httpx.Request] = []
    replies: list[httpx.Response | Exception] = []
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def client_factory(*args, **kwargs):
        return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)
    return calls, replies


class TestClassifyStatus:

    @pytest.mark.parametrize("status,kind", [
        (None, ProviderErrorKind.NETWORK),
        (401, ProviderErrorKind.AUTH),
        (403, ProviderErrorKind.FORBIDDEN),
        (404, ProviderErrorKind.NOT_FOUND),
        (429, ProviderErrorKind.RATE_LIMITED),
        (500, ProviderErrorKind.SERVER),
        (503, ProviderErrorKind.SERVER),
        (400, ProviderErrorKind.UNKNOWN),
    ])
    def test_kinds(self, status, kind):
        assert classify_status(status) == kind

    def test_user_messages(self):
        assert ProviderError("x", status_code=401).user_message() == (
            "API Error: Invalid API key. Check your API key in settings."
        )
        assert ProviderError("x", status_code=429).user_message().startswith("API Error: Rate limit")
        assert ProviderError("boom", status_code=418).user_message() == "Request failed: boom"


class TestProviderConfiguration:

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError, match="API key is missing"):
            create_provider("anthropic", model="claude-sonnet-4-5-20250929")

    def test_missing_model(self):
        with pytest.raises(ConfigurationError, match="Model name is required"):
            create_provider("openai", api_key="sk-test")

    def test_custom_needs_base_url(self):
        with pytest.raises(ConfigurationError, match="base URL"):
            create_provider("custom", model="local", api_key="key")

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unknown provider"):
            create_provider("carrier-pigeon")

    @pytest.mark.parametrize("base_url", ["localhost:9999/v1/chat", "ftp://models.local/v1"])
    def test_custom_base_url_needs_http_scheme(self, base_url):
        config = ApiConfig(provider="custom", api_key="k", model="m", base_url=base_url)
        with pytest.raises(ConfigurationError, match="must start with http"):
            config.create_provider()

    def test_factory_types(self):
        assert isinstance(create_provider("mock"), MockProvider)
        assert isinstance(create_provider("openrouter", model="m", api_key="k"), OpenRouterProvider)
        custom = create_provider("custom", model="m", api_key="k", base_url="http://localhost:1234/v1")
        assert isinstance(custom, CustomProvider)
        assert custom.url == "http://localhost:1234/v1"

    def test_api_config_extra_params(self):
        config = ApiConfig(provider="openai", api_key="k", params_json='{"seed": 7}')
        provider = config.create_provider()
        assert provider.extra_params == {"seed": 7}

    @pytest.mark.parametrize("params", ['{"seed": ', "[1, 2]"])
    def test_api_config_invalid_params(self, params):
        config = ApiConfig(provider="openai", api_key="k", params_json=params)
        with pytest.raises(ConfigurationError, match="Invalid JSON in additional params"):
            config.create_provider()

    def test_mock_config_needs_no_key(self):
        assert ApiConfig(provider="mock").has_api_key
        assert not ApiConfig(provider="anthropic").has_api_key

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MONAMES_PROVIDER", "openrouter")
        monkeypatch.delenv("MONAMES_API_KEY", raising=False)
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
        monkeypatch.setenv("MONAMES_MODEL", "some/model")

        config = ApiConfig.from_env()
        assert config.provider == "openrouter"
        assert config.api_key == "or-key"
        assert config.model == "some/model"


class TestAnthropicProvider:

    def test_body_splits_system_message(self):
        provider = AnthropicProvider(model="claude-test", api_key="k", top_k=5)
        body = provider.build_body(MESSAGES, temperature=0.3, max_tokens=200)

        assert body["system"] == MESSAGES[0]["content"]
        assert body["messages"] == [MESSAGES[1]]
        assert body["top_k"] == 5
        assert body["max_tokens"] == 200

    @pytest.mark.asyncio
    async def test_complete(self, transport):
        calls, replies = transport
        replies.append(httpx.Response(200, json={
            "content": [{"type": "text", "text": '{"clue":"WATER",'}, {"type": "text", "text": '"count":2}'}],
            "usage": {"input_tokens": 12, "output_tokens": 5},
        }))
        provider = AnthropicProvider(model="claude-test", api_key="secret")

        response = await provider.complete(MESSAGES)

        assert response.content == '{"clue":"WATER",\n"count":2}'
        assert response.input_tokens == 12
        assert calls[0].headers["x-api-key"] == "secret"
        assert json.loads(calls[0].content)["model"] == "claude-test"


class TestOpenAIProvider:

    def test_reasoning_effort(self):
        openai = OpenAIProvider(model="o3", api_key="k", reasoning_effort="low")
        openrouter = OpenRouterProvider(model="o3", api_key="k", reasoning_effort="low")

        assert openai.build_body(MESSAGES, 0.2, 100)["reasoning_effort"] == "low"
        assert "reasoning_effort" not in openrouter.build_body(MESSAGES, 0.2, 100)

    @pytest.mark.asyncio
    async def test_auth_error_is_not_retried(self, transport):
        calls, replies = transport
        replies.append(httpx.Response(401, json={"error": {"message": "bad key"}}))
        provider = OpenAIProvider(model="gpt-test", api_key="k")

        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(MESSAGES)

        assert exc_info.value.kind == ProviderErrorKind.AUTH
        assert "bad key" in str(exc_info.value)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self, transport):
        calls, replies = transport
        replies.append(httpx.Response(503, text="unavailable"))
        replies.append(httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]}))
        provider = OpenAIProvider(model="gpt-test", api_key="k", max_retries=2)
        provider.retry_base_delay = 0

        response = await provider.complete(MESSAGES)

        assert response.content == "{}"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self, transport):
        calls, replies = transport
        replies.extend([httpx.Response(429), httpx.Response(429)])
        provider = OpenAIProvider(model="gpt-test", api_key="k", max_retries=2)
        provider.retry_base_delay = 0

        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(MESSAGES)
        assert exc_info.value.kind == ProviderErrorKind.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_html_body_with_200(self, transport):
        calls, replies = transport
        replies.append(httpx.Response(200, text="<html>gateway</html>"))
        provider = OpenAIProvider(model="gpt-test", api_key="k")

        with pytest.raises(ProviderError, match="non-JSON response") as exc_info:
            await provider.complete(MESSAGES)

        assert exc_info.value.user_message().startswith("Request failed:")
        assert len(calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["not", "an", "object"], {"choices": ["oops"]}])
    async def test_malformed_json_body(self, transport, body):
        _, replies = transport
        replies.append(httpx.Response(200, json=body))
        provider = OpenAIProvider(model="gpt-test", api_key="k")

        with pytest.raises(ProviderError, match="unexpected response"):
            await provider.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_unsupported_protocol_is_network_error(self, transport):
        calls, replies = transport
        replies.append(httpx.UnsupportedProtocol("Request URL has an unsupported protocol"))
        provider = OpenAIProvider(model="gpt-test", api_key="k")

        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(MESSAGES)

        assert exc_info.value.kind == ProviderErrorKind.NETWORK
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_connect_error_is_retried(self, transport):
        calls, replies = transport
        replies.append(httpx.ConnectError("connection refused"))
        replies.append(httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]}))
        provider = OpenAIProvider(model="gpt-test", api_key="k", max_retries=2)
        provider.retry_base_delay = 0

        response = await provider.complete(MESSAGES)

        assert response.content == "{}"
        assert len(calls) == 2


class TestMockProvider:

    @pytest.mark.asyncio
    async def test_cycles_responses(self):
        provider = MockProvider(responses=["one", "two"])

        assert (await provider.complete(MESSAGES)).content == "one"
        assert (await provider.complete(MESSAGES, temperature=0.9)).content == "two"
        assert (await provider.complete(MESSAGES)).content == "one"
        assert provider.call_count == 3
        assert provider.last_messages == MESSAGES
