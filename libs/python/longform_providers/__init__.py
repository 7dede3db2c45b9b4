"""Provider abstraction over OpenAI-compatible endpoints, Gemini and a mock."""

from .base import LLMProvider, ProviderCapabilities, ProviderRequest, ProviderResponse
from .config import ProviderConfig, ProviderSettings, load_provider_config
from .exceptions import ProviderConfigError, ProviderError, ProviderResponseError
from .factory import ProviderFactory
from .mock import MockProvider

__all__ = [
    "LLMProvider",
    "ProviderCapabilities",
    "ProviderRequest",
    "ProviderResponse",
    "ProviderConfig",
    "ProviderSettings",
    "load_provider_config",
    "ProviderError",
    "ProviderConfigError",
    "ProviderResponseError",
    "ProviderFactory",
    "MockProvider",
]
