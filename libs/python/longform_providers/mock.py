"""Deterministic mock provider for tests and offline development."""

from __future__ import annotations

import json
from collections import deque
from typing import Callable, Iterable

from .base import LLMProvider, ProviderCapabilities, ProviderRequest, ProviderResponse
from .config import ProviderConfig, ProviderSettings

DEFAULT_TEXT = "Mock summary generated for testing."

Responder = Callable[[ProviderRequest], str]


class MockProvider(LLMProvider):
    """Replays scripted replies, or echoes the prompt when the script runs out.

    ``responses`` is consumed in order. An item that is an ``Exception``
    instance is raised instead of returned, which lets tests simulate a failing
    call. ``responder`` takes precedence over the default echo once the script
    is exhausted. Every request is kept in ``requests`` for assertions.
    """

    name = "mock"

    def __init__(
        self,
        config: ProviderConfig | None = None,
        *,
        responses: Iterable[str | Exception] | None = None,
        responder: Responder | None = None,
    ) -> None:
        if config is None:
            config = ProviderConfig(
                name="mock",
                api_key="mock",
                model="mock",
                settings=ProviderSettings(temperature=0.1),
            )
        self._config = config
        self._script: deque[str | Exception] = deque(responses or [])
        self._responder = responder
        self.requests: list[ProviderRequest] = []

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(supports_json_mode=True, max_output_tokens=2000)

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        self.requests.append(request)
        if self._script:
            scripted = self._script.popleft()
            if isinstance(scripted, Exception):
                raise scripted
            text = scripted
        elif self._responder is not None:
            text = self._responder(request)
        elif request.json_mode:
            text = json.dumps([{"title": DEFAULT_TEXT, "summary": request.prompt[:50]}])
        else:
            text = f"{DEFAULT_TEXT}\nPrompt: {request.prompt[:80]}"
        return ProviderResponse(
            text=text,
            raw={"mock": True},
            model="mock",
            prompt_tokens=len(request.prompt.split()),
            completion_tokens=len(text.split()),
            cost_usd=0.0,
            latency_ms=1.0,
        )
