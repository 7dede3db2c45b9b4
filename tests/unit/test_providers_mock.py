"""Tests for the mock provider, the factory and the OpenAI-compatible adapter."""

import asyncio
import json
from types import SimpleNamespace

import pytest

from longform_providers import (
    MockProvider,
    ProviderConfig,
    ProviderConfigError,
    ProviderFactory,
    ProviderRequest,
    ProviderSettings,
)
from longform_providers.openai import OpenAIProvider
from longform_providers.pricing import estimate_cost


def test_mock_generate_sync() -> None:
    provider = MockProvider()
    request = ProviderRequest(prompt="Hello world")
    response = asyncio.run(provider.generate(request))
    assert response.model == "mock"
    assert response.text.startswith("Mock summary generated for testing.")
    assert response.prompt_tokens == 2
    assert provider.requests == [request]


def test_mock_script_is_consumed_in_order() -> None:
    provider = MockProvider(responses=["one", ValueError("boom"), "two"])

    async def run() -> list[str]:
        first = await provider.generate(ProviderRequest(prompt="a"))
        with pytest.raises(ValueError):
            await provider.generate(ProviderRequest(prompt="b"))
        second = await provider.generate(ProviderRequest(prompt="c"))
        return [first.text, second.text]

    assert asyncio.run(run()) == ["one", "two"]


def test_mock_json_mode() -> None:
    provider = MockProvider()
    request = ProviderRequest(prompt="List characters", json_mode=True)
    response = asyncio.run(provider.generate(request))
    assert isinstance(json.loads(response.text), list)


def test_factory_creates_mock_when_config_provided() -> None:
    config = ProviderConfig(name="mock", api_key="mock", model="mock", settings=ProviderSettings())
    provider = ProviderFactory.create(config)
    assert isinstance(provider, MockProvider)


def test_factory_maps_compatible_vendors_to_openai() -> None:
    config = ProviderConfig(
        name="deepseek", api_key="key", model="deepseek-chat", base_url="https://api.deepseek.com"
    )
    assert isinstance(ProviderFactory.create(config), OpenAIProvider)


def test_factory_rejects_unknown_provider() -> None:
    config = ProviderConfig(name="nope", api_key="key", model="m")
    with pytest.raises(ProviderConfigError):
        ProviderFactory.create(config)


def test_openai_provider_builds_chat_request() -> None:
    captured = {}

    async def fake_create(**params):
        captured.update(params)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="A recap."))],
            usage=SimpleNamespace(prompt_tokens=1000, completion_tokens=100),
            model="gpt-4o-mini",
        )

    config = ProviderConfig(
        name="openai", api_key="key", model="gpt-4o-mini", settings=ProviderSettings(temperature=0.9)
    )
    provider = OpenAIProvider(config)
    provider._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=fake_create)))

    request = ProviderRequest(prompt="Chapter text", system_prompt="You are a professional editor helper.", temperature=0.5)
    response = asyncio.run(provider.generate(request))

    assert captured["messages"] == [
        {"role": "system", "content": "You are a professional editor helper."},
        {"role": "user", "content": "Chapter text"},
    ]
    assert captured["temperature"] == 0.5
    assert "response_format" not in captured
    assert response.text == "A recap."
    assert response.cost_usd == estimate_cost("openai", "gpt-4o-mini", 1000, 100)


def test_estimate_cost_handles_unknown_models() -> None:
    assert estimate_cost("mock", "anything", 10, 10) == 0.0
    assert estimate_cost("openai", "unknown-model", 10, 10) is None
    assert estimate_cost("openai", "gpt-4o", 1_000_000, 0) == 2.5
