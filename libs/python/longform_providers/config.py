"""Configuration models and helpers for provider selection."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ProviderConfigError

PROVIDER_ENV_VAR = "LLM_PROVIDER"
DEFAULT_PROVIDER = "openai"


class ProviderSettings(BaseModel):
    """Per-call default parameters."""

    temperature: float = Field(0.7, ge=0, le=2)
    max_output_tokens: int | None = Field(None, ge=16)
    top_p: float | None = Field(None, ge=0, le=1)
    json_mode: bool = Field(False)


class ProviderConfig(BaseModel):
    """Configuration for a single provider instance."""

    model_config = ConfigDict(frozen=True)

    name: str
    api_key: str
    model: str
    base_url: str | None = Field(
        None, description="Override for OpenAI-compatible endpoints (proxies, local servers)"
    )
    settings: ProviderSettings = Field(default_factory=ProviderSettings)


def load_provider_config(prefix: str | None = None) -> ProviderConfig:
    """Load configuration from environment variables.

    Args:
        prefix: Optional prefix for environment variables. Defaults to the
            value of ``LLM_PROVIDER`` (or ``openai``).

    Environment variables used (assuming prefix "OPENAI"):
        OPENAI_API_KEY
        OPENAI_MODEL
        OPENAI_BASE_URL (optional)
        OPENAI_TEMPERATURE (optional)
        OPENAI_MAX_OUTPUT_TOKENS (optional)
        OPENAI_TOP_P (optional)
        OPENAI_JSON_MODE (optional boolean)

    Raises:
        ProviderConfigError: If required variables are missing or malformed.
    """

    provider_name = (prefix or os.getenv(PROVIDER_ENV_VAR, DEFAULT_PROVIDER)).upper()

    def read_env(key: str, default: Any | None = None) -> Any:
        return os.getenv(f"{provider_name}_{key}", default)

    def parse_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in {"true", "1", "yes", "on"}

    api_key = read_env("API_KEY")
    model = read_env("MODEL")
    if not api_key or not model:
        raise ProviderConfigError(
            f"{provider_name}_API_KEY and {provider_name}_MODEL must both be set"
        )

    try:
        temperature = float(read_env("TEMPERATURE", 0.7))
    except ValueError as exc:
        raise ProviderConfigError("TEMPERATURE must be a float") from exc

    max_output_tokens = None
    max_output_raw = read_env("MAX_OUTPUT_TOKENS")
    if max_output_raw not in (None, ""):
        try:
            parsed_max = int(str(max_output_raw).strip())
        except (TypeError, ValueError) as exc:
            raise ProviderConfigError("MAX_OUTPUT_TOKENS must be a positive integer") from exc
        max_output_tokens = parsed_max if parsed_max > 0 else None

    top_p_raw = read_env("TOP_P", "")
    try:
        top_p = float(top_p_raw) if str(top_p_raw).strip() else None
    except ValueError as exc:
        raise ProviderConfigError("TOP_P must be a float between 0 and 1") from exc

    base_url = read_env("BASE_URL")
    if isinstance(base_url, str):
        base_url = base_url.strip() or None

    settings = ProviderSettings(
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        top_p=top_p,
        json_mode=parse_bool(read_env("JSON_MODE", "false")),
    )

    return ProviderConfig(
        name=provider_name.lower(),
        api_key=api_key,
        model=model,
        base_url=base_url,
        settings=settings,
    )
