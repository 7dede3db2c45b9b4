"""Utilities for working with provider configurations inside the continuity service."""

from __future__ import annotations

import logging
import os

from longform_providers import (
    ProviderConfig,
    ProviderConfigError,
    ProviderSettings,
    load_provider_config,
)
from longform_providers.config import DEFAULT_PROVIDER, PROVIDER_ENV_VAR

from .models import ProviderOverride, SummaryConfig

logger = logging.getLogger(__name__)

MOCK_PROVIDER = "mock"


def _mock_config(temperature: float | None = None) -> ProviderConfig:
    settings = ProviderSettings() if temperature is None else ProviderSettings(temperature=temperature)
    return ProviderConfig(name=MOCK_PROVIDER, api_key=MOCK_PROVIDER, model=MOCK_PROVIDER, settings=settings)


def resolve_provider_config(override: ProviderOverride | None) -> ProviderConfig:
    """Provider configuration for structured generation, with request overrides applied."""

    provider_name = override.name if override and override.name else os.getenv(PROVIDER_ENV_VAR, MOCK_PROVIDER)

    if provider_name and provider_name.lower() == MOCK_PROVIDER:
        return _mock_config()

    if override and override.name:
        config = load_provider_config(prefix=override.name)
    else:
        config = load_provider_config()

    update_kwargs = {}
    if override:
        if override.model:
            update_kwargs["model"] = override.model
        if override.base_url:
            update_kwargs["base_url"] = override.base_url

        settings_updates = {}
        if override.temperature is not None:
            settings_updates["temperature"] = override.temperature
        if override.max_output_tokens is not None:
            settings_updates["max_output_tokens"] = override.max_output_tokens
        if override.top_p is not None:
            settings_updates["top_p"] = override.top_p

        if settings_updates:
            update_kwargs["settings"] = config.settings.model_copy(update=settings_updates)

    if update_kwargs:
        config = config.model_copy(update=update_kwargs)

    return config


def summary_provider_config(config: SummaryConfig) -> ProviderConfig:
    """Translate a summary configuration into a provider configuration."""

    if config.provider_name.lower() == MOCK_PROVIDER:
        return _mock_config(config.temperature)

    return ProviderConfig(
        name=config.provider_name.lower(),
        api_key=config.api_key,
        model=config.model,
        base_url=config.base_url or None,
        settings=ProviderSettings(temperature=config.temperature),
    )


def _read_interval(key: str, default: int) -> int:
    raw = os.getenv(key, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ProviderConfigError(f"{key} must be a positive integer") from exc
    if value < 1:
        raise ProviderConfigError(f"{key} must be a positive integer")
    return value


def load_summary_config() -> SummaryConfig | None:
    """Build summary settings from the environment.

    Returns ``None`` when no provider credentials are configured, in which case
    writes are stored without scheduling summaries.

    Environment variables used:
        LLM_PROVIDER plus the ``{PROVIDER}_*`` variables of :func:`load_provider_config`
        LONGFORM_SMALL_SUMMARY_INTERVAL (optional, default 3)
        LONGFORM_BIG_SUMMARY_INTERVAL (optional, default 6)
        LONGFORM_CONTEXT_CHAPTER_COUNT (optional, default 0)
    """

    intervals = {
        "small_summary_interval": _read_interval("LONGFORM_SMALL_SUMMARY_INTERVAL", 3),
        "big_summary_interval": _read_interval("LONGFORM_BIG_SUMMARY_INTERVAL", 6),
    }
    context_raw = os.getenv("LONGFORM_CONTEXT_CHAPTER_COUNT", "").strip()
    if context_raw:
        try:
            intervals["context_chapter_count"] = max(int(context_raw), 0)
        except ValueError as exc:
            raise ProviderConfigError("LONGFORM_CONTEXT_CHAPTER_COUNT must be an integer") from exc

    provider_name = os.getenv(PROVIDER_ENV_VAR, DEFAULT_PROVIDER)
    if provider_name.lower() == MOCK_PROVIDER:
        return SummaryConfig(provider_name=MOCK_PROVIDER, api_key=MOCK_PROVIDER, model=MOCK_PROVIDER, **intervals)

    try:
        provider = load_provider_config()
    except ProviderConfigError as exc:
        logger.info("Summary provider not configured: %s", exc)
        return None

    return SummaryConfig(
        provider_name=provider.name,
        api_key=provider.api_key,
        model=provider.model,
        base_url=provider.base_url,
        **intervals,
    )


__all__ = ["resolve_provider_config", "summary_provider_config", "load_summary_config"]
