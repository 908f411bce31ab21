"""LLM provider abstraction for AI actors."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import ConfigurationError, ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


@dataclass
class LLMResponse:
    """Response from an LLM call."""
    content: str
    model: str
    input_tokens: int
    output_tokens: int
    latency_ms: float
    raw_response: dict[str, Any] | None = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    model: str
    temperature: float = 0.2
    max_tokens: int = 1000

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion from the LLM."""
        pass


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
        error = data.get("error", {})
        if isinstance(error, dict):
            return error.get("message", response.text)
        return str(error)
    except (ValueError, AttributeError):
        return response.text


class HTTPProvider(LLMProvider):
    """Shared request/retry handling for HTTP based providers."""

    default_url = ""
    name = "http"
    retry_base_delay = 1.0

    def __init__(
        self,
        model: str = "",
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 1000,
        top_p: float | None = None,
        top_k: int | None = None,
        reasoning_effort: str | None = None,
        extra_params: dict[str, Any] | None = None,
        timeout: float = 60.0,
        max_retries: int = 3,
    ):
        if not api_key:
            raise ConfigurationError(
                "API key is missing. Add your API key in settings to enable AI turns."
            )
        if not model:
            raise ConfigurationError("Model name is required. Specify a model in settings.")

        self.model = model
        self.api_key = api_key
        self.url = base_url or self.default_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.top_p = top_p
        self.top_k = top_k
        self.reasoning_effort = reasoning_effort
        self.extra_params = extra_params or {}
        self.timeout = timeout
        self.max_retries = max_retries

        if not self.url:
            raise ConfigurationError(
                "Custom provider requires a base URL. Add one in settings."
            )
        if not self.url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Base URL must start with http:// or https:// (got {self.url!r})."
            )

    def build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @abstractmethod
    def build_body(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        pass

    @abstractmethod
    def extract_text(self, data: dict[str, Any]) -> str:
        pass

    def extract_usage(self, data: dict[str, Any]) -> tuple[int, int]:
        usage = data.get("usage") or {}
        return usage.get("prompt_tokens", 0), usage.get("completion_tokens", 0)

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion, retrying rate limits, server and network errors."""
        temperature = self.temperature if temperature is None else temperature
        max_tokens = self.max_tokens if max_tokens is None else max_tokens
        body = self.build_body(messages, temperature, max_tokens)

        start_time = time.perf_counter()
        last_error: ProviderError | None = None

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        self.url,
                        headers=self.build_headers(),
                        json=body,
                        timeout=self.timeout,
                    )
            except (httpx.RemoteProtocolError, httpx.ReadError, httpx.ConnectError, httpx.TimeoutException) as e:
                last_error = ProviderError(
                    f"Network error ({type(e).__name__}): {e}",
                    kind=ProviderErrorKind.NETWORK,
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise ProviderError(
                    f"Network error ({type(e).__name__}): {e}",
                    kind=ProviderErrorKind.NETWORK,
                ) from e
            else:
                if response.status_code == 200:
                    try:
                        data = response.json()
                    except ValueError as e:
                        raise ProviderError(
                            f"{self.name} returned a non-JSON response: {response.text[:200]!r}",
                            status_code=response.status_code,
                        ) from e
                    break
                last_error = ProviderError(
                    f"{self.name} API error ({response.status_code}): {_error_detail(response)}",
                    status_code=response.status_code,
                )
                if last_error.kind not in (ProviderErrorKind.RATE_LIMITED, ProviderErrorKind.SERVER):
                    raise last_error

            if attempt < self.max_retries - 1:
                wait_time = self.retry_base_delay * 2 ** attempt
                logger.warning(f"{last_error}, retrying in {wait_time}s (attempt {attempt + 1}/{self.max_retries})")
                await asyncio.sleep(wait_time)
        else:
            raise last_error or ProviderError(f"Failed after {self.max_retries} attempts")

        latency_ms = (time.perf_counter() - start_time) * 1000
        try:
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object, got {type(data).__name__}")
            content = self.extract_text(data)
            input_tokens, output_tokens = self.extract_usage(data)
        except (AttributeError, TypeError, IndexError) as e:
            raise ProviderError(f"{self.name} returned an unexpected response: {e}") from e

        return LLMResponse(
            content=content,
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=latency_ms,
            raw_response=data,
        )


class AnthropicProvider(HTTPProvider):
    """LLM provider using the Anthropic messages API."""

    default_url = ANTHROPIC_URL
    name = "Anthropic"

    def build_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }

    def build_body(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        system_message = None
        anthropic_messages = []

        for msg in messages:
            if msg["role"] == "system":
                system_message = msg["content"]
            else:
                anthropic_messages.append({
                    "role": msg["role"],
                    "content": msg["content"],
                })

        body: dict[str, Any] = {
            "model": self.model,
            "messages": anthropic_messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system_message:
            body["system"] = system_message
        if self.top_p is not None:
            body["top_p"] = self.top_p
        if self.top_k is not None:
            body["top_k"] = self.top_k
        body.update(self.extra_params)
        return body

    def extract_text(self, data: dict[str, Any]) -> str:
        if isinstance(data.get("text"), str):
            return data["text"]
        parts = data.get("content")
        if isinstance(parts, list):
            return "\n".join(
                part.get("text", "") for part in parts
                if isinstance(part, dict) and (part.get("type") == "text" or isinstance(part.get("text"), str))
            )
        return ""

    def extract_usage(self, data: dict[str, Any]) -> tuple[int, int]:
        usage = data.get("usage") or {}
        return usage.get("input_tokens", 0), usage.get("output_tokens", 0)


class OpenAIProvider(HTTPProvider):
    """LLM provider using an OpenAI-compatible chat completions API."""

    default_url = OPENAI_URL
    name = "OpenAI"
    supports_reasoning_effort = True

    def build_body(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if self.top_p is not None:
            body["top_p"] = self.top_p
        if self.reasoning_effort and self.supports_reasoning_effort:
            body["reasoning_effort"] = self.reasoning_effort
        body.update(self.extra_params)
        return body

    def extract_text(self, data: dict[str, Any]) -> str:
        choices = data.get("choices")
        choice = choices[0] if isinstance(choices, list) and choices else {}
        message = choice.get("message") or {}
        if isinstance(message.get("content"), str):
            return message["content"]
        if isinstance(choice.get("text"), str):
            return choice["text"]
        return ""


class OpenRouterProvider(OpenAIProvider):
    """LLM provider using OpenRouter."""

    default_url = OPENROUTER_URL
    name = "OpenRouter"
    supports_reasoning_effort = False

    def build_headers(self) -> dict[str, str]:
        headers = super().build_headers()
        headers["X-Title"] = "Monames"
        return headers


class CustomProvider(OpenAIProvider):
    """Any OpenAI-compatible endpoint; base_url is required."""

    default_url = ""
    name = "Custom provider"


class MockProvider(LLMProvider):
    """Mock LLM provider for testing and offline play."""

    def __init__(
        self,
        responses: list[str] | None = None,
        model: str = "mock-model",
        **kwargs: Any,
    ):
        self.responses = responses or [
            '{"clue":"WATER","count":2,"notes":"Mock spymaster response."}'
        ]
        self.model = model
        self.temperature = kwargs.get("temperature", 0.2)
        self.max_tokens = kwargs.get("max_tokens", 1000)
        self.call_count = 0
        self.last_messages: list[dict[str, str]] = []
        self.last_temperature: float | None = None

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Return the next canned response."""
        self.last_messages = messages
        self.last_temperature = self.temperature if temperature is None else temperature

        response_idx = self.call_count % len(self.responses)
        content = self.responses[response_idx]
        self.call_count += 1

        return LLMResponse(
            content=content,
            model=self.model,
            input_tokens=len(str(messages)) // 4,
            output_tokens=len(content) // 4,
            latency_ms=10.0,
            raw_response=None,
        )


PROVIDERS: dict[str, type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "openrouter": OpenRouterProvider,
    "custom": CustomProvider,
    "mock": MockProvider,
}


def create_provider(
    provider_type: str = "anthropic",
    model: str | None = None,
    api_key: str | None = None,
    **kwargs: Any,
) -> LLMProvider:
    """Factory function to create LLM providers."""
    if provider_type not in PROVIDERS:
        raise ConfigurationError(
            f"Unknown provider: {provider_type}. Options: {list(PROVIDERS.keys())}"
        )

    provider_cls = PROVIDERS[provider_type]

    provider_kwargs: dict[str, Any] = {}
    if model:
        provider_kwargs["model"] = model
    if api_key:
        provider_kwargs["api_key"] = api_key
    provider_kwargs.update(kwargs)

    return provider_cls(**provider_kwargs)
