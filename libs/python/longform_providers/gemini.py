"""Google Gemini provider implementation."""

from __future__ import annotations

import time

from google import genai
from google.genai import types

from .base import LLMProvider, ProviderCapabilities, ProviderRequest, ProviderResponse
from .config import ProviderConfig
from .exceptions import ProviderResponseError
from .pricing import estimate_cost


class GeminiProvider(LLMProvider):
    name = "gemini"

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._client = genai.Client(api_key=config.api_key)

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_json_mode=True,
            max_output_tokens=self._config.settings.max_output_tokens,
        )

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        settings = self._config.settings
        json_mode = request.json_mode if request.json_mode is not None else settings.json_mode
        generation_config = types.GenerateContentConfig(
            system_instruction=request.system_prompt or None,
            temperature=(
                request.temperature if request.temperature is not None else settings.temperature
            ),
            top_p=request.top_p if request.top_p is not None else settings.top_p,
            max_output_tokens=(
                request.max_output_tokens
                if request.max_output_tokens is not None
                else settings.max_output_tokens
            ),
            response_mime_type="application/json" if json_mode else None,
        )

        start = time.perf_counter()
        response = await self._client.aio.models.generate_content(
            model=self._config.model,
            contents=request.prompt,
            config=generation_config,
        )
        latency_ms = (time.perf_counter() - start) * 1000

        try:
            text = response.text or ""
        except (AttributeError, ValueError) as err:
            raise ProviderResponseError("Gemini response missing text content") from err

        usage = getattr(response, "usage_metadata", None)
        prompt_tokens = (getattr(usage, "prompt_token_count", 0) or 0) if usage else 0
        completion_tokens = (getattr(usage, "candidates_token_count", 0) or 0) if usage else 0

        return ProviderResponse(
            text=text,
            raw=response,
            model=self._config.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost_usd=estimate_cost(
                self._config.name, self._config.model, prompt_tokens, completion_tokens
            ),
            latency_ms=latency_ms,
        )
