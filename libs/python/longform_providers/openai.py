"""OpenAI-compatible chat completion provider."""

from __future__ import annotations

import time
from typing import Any, Dict

from openai import AsyncOpenAI

from .base import LLMProvider, ProviderCapabilities, ProviderRequest, ProviderResponse
from .config import ProviderConfig
from .exceptions import ProviderResponseError
from .pricing import estimate_cost


class OpenAIProvider(LLMProvider):
    """Talks to OpenAI or any endpoint that speaks its chat completions API."""

    name = "openai"

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url or None)

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_json_mode=True,
            supports_base_url=True,
            max_output_tokens=self._config.settings.max_output_tokens,
        )

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        settings = self._config.settings
        params: Dict[str, Any] = {
            "model": self._config.model,
            "messages": request.messages(),
            "temperature": (
                request.temperature if request.temperature is not None else settings.temperature
            ),
        }

        top_p = request.top_p if request.top_p is not None else settings.top_p
        if top_p is not None:
            params["top_p"] = top_p

        max_output = (
            request.max_output_tokens
            if request.max_output_tokens is not None
            else settings.max_output_tokens
        )
        if max_output:
            params["max_tokens"] = max_output

        json_mode = request.json_mode if request.json_mode is not None else settings.json_mode
        if json_mode:
            params["response_format"] = {"type": "json_object"}

        start = time.perf_counter()
        response = await self._client.chat.completions.create(**params)
        latency_ms = (time.perf_counter() - start) * 1000

        try:
            text = response.choices[0].message.content or ""
        except (IndexError, AttributeError) as err:
            raise ProviderResponseError("Chat completion response missing content") from err

        usage = getattr(response, "usage", None)
        prompt_tokens = getattr(usage, "prompt_tokens", 0) if usage else 0
        completion_tokens = getattr(usage, "completion_tokens", 0) if usage else 0
        model = getattr(response, "model", None) or self._config.model

        return ProviderResponse(
            text=text,
            raw=response,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost_usd=estimate_cost(self._config.name, model, prompt_tokens, completion_tokens),
            latency_ms=latency_ms,
        )
