"""Configuration for API access and session behaviour."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from monames.core.errors import ConfigurationError
from monames.core.llm import LLMProvider, create_provider

ProviderName = Literal["anthropic", "openai", "openrouter", "custom", "mock"]

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

# Provider specific key variables, used when MONAMES_API_KEY is unset
_PROVIDER_KEY_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


class ApiConfig(BaseModel):
    """How AI actors reach their model."""

    provider: ProviderName = "anthropic"
    base_url: str = ""
    api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = 1000
    temperature: float = 0.2
    top_p: float | None = None
    top_k: int | None = None
    reasoning_effort: str = ""
    params_json: str = ""  # extra request fields, as a JSON object

    @classmethod
    def from_env(cls) -> "ApiConfig":
        """Build a config from MONAMES_* environment variables."""
        provider = os.environ.get("MONAMES_PROVIDER", "anthropic")
        api_key = os.environ.get("MONAMES_API_KEY") or os.environ.get(
            _PROVIDER_KEY_VARS.get(provider, ""), ""
        )
        data: dict[str, Any] = {"provider": provider, "api_key": api_key}
        if os.environ.get("MONAMES_MODEL"):
            data["model"] = os.environ["MONAMES_MODEL"]
        if os.environ.get("MONAMES_BASE_URL"):
            data["base_url"] = os.environ["MONAMES_BASE_URL"]
        return cls(**data)

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key.strip()) or self.provider == "mock"

    def extra_params(self) -> dict[str, Any]:
        """Parse params_json; raises ConfigurationError if it is not an object."""
        if not self.params_json.strip():
            return {}
        try:
            parsed = json.loads(self.params_json)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in additional params - {e}. Fix it in settings."
            ) from e
        if not isinstance(parsed, dict):
            raise ConfigurationError(
                "Invalid JSON in additional params - JSON params must be an object. "
                "Fix it in settings."
            )
        return parsed

    def create_provider(self) -> LLMProvider:
        """Instantiate the provider this config points at."""
        return create_provider(
            self.provider,
            model=self.model.strip(),
            api_key=self.api_key.strip(),
            base_url=self.base_url.strip() or None,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=self.top_p,
            top_k=self.top_k,
            reasoning_effort=self.reasoning_effort or None,
            extra_params=self.extra_params(),
        )


def default_state_path() -> Path:
    """Snapshot location from env or default."""
    env_path = os.environ.get("MONAMES_STATE_PATH")
    if env_path:
        return Path(env_path)
    return Path.home() / ".monames" / "state.json"


class Settings(BaseModel):
    """Session level settings."""

    state_path: Path = Field(default_factory=default_state_path)
    save_debounce_seconds: float = 0.4
    guess_select_delay: float = 0.6
    guess_reveal_delay: float = 0.8


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Load .env (if present) and build Settings."""
    load_dotenv(env_file)
    return Settings()
