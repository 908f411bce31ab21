"""Error types raised at the boundaries of the game engine."""

from __future__ import annotations

from enum import Enum


class InputValidationError(ValueError):
    """Human input that cannot be applied (blank clue, bad count, ...)."""


class PayloadParseError(ValueError):
    """An AI response that holds no parseable JSON payload."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class ConfigurationError(ValueError):
    """Settings missing or invalid; raised before any network call."""


class ProviderErrorKind(str, Enum):
    AUTH = "auth"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"


_USER_MESSAGES = {
    ProviderErrorKind.AUTH: "API Error: Invalid API key. Check your API key in settings.",
    ProviderErrorKind.FORBIDDEN: "API Error: Access forbidden. Check your API key permissions.",
    ProviderErrorKind.NOT_FOUND: "API Error: Model not found. Verify your model name.",
    ProviderErrorKind.RATE_LIMITED: "API Error: Rate limit exceeded. Wait a moment and try again.",
    ProviderErrorKind.SERVER: (
        "API Error: Server error. The API service may be temporarily unavailable. "
        "Try again later."
    ),
    ProviderErrorKind.NETWORK: "Network Error: Cannot reach the API. Check your internet connection.",
}


def classify_status(status_code: int | None) -> ProviderErrorKind:
    """Bucket an HTTP status into a ProviderErrorKind."""
    if status_code is None:
        return ProviderErrorKind.NETWORK
    if status_code == 401:
        return ProviderErrorKind.AUTH
    if status_code == 403:
        return ProviderErrorKind.FORBIDDEN
    if status_code == 404:
        return ProviderErrorKind.NOT_FOUND
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMITED
    if status_code >= 500:
        return ProviderErrorKind.SERVER
    return ProviderErrorKind.UNKNOWN


class ProviderError(RuntimeError):
    """A failed request to an AI provider."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        kind: ProviderErrorKind | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.kind = kind or classify_status(status_code)

    def user_message(self) -> str:
        return _USER_MESSAGES.get(self.kind, f"Request failed: {self}")
