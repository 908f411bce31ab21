"""Shared infrastructure for talking to AI providers."""

from .errors import (
    InputValidationError,
    PayloadParseError,
    ConfigurationError,
    ProviderError,
    ProviderErrorKind,
    classify_status,
)
from .parsing import extract_json, parse_ai_payload
from .trace import ResponseLogEntry, AIResult
from .llm import (
    LLMProvider,
    LLMResponse,
    HTTPProvider,
    AnthropicProvider,
    OpenAIProvider,
    OpenRouterProvider,
    CustomProvider,
    MockProvider,
    create_provider,
)

__all__ = [
    # Errors
    "InputValidationError",
    "PayloadParseError",
    "ConfigurationError",
    "ProviderError",
    "ProviderErrorKind",
    "classify_status",
    # Parsing
    "extract_json",
    "parse_ai_payload",
    # Logs
    "ResponseLogEntry",
    "AIResult",
    # LLM providers
    "LLMProvider",
    "LLMResponse",
    "HTTPProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "CustomProvider",
    "MockProvider",
    "create_provider",
]
