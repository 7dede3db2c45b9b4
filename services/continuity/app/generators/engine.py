"""Structured list generation: ask for JSON, recover it, normalize it."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from longform_observability import log_context, observe_provider_response, observe_structured_parse
from longform_providers import LLMProvider, ProviderFactory, ProviderRequest
from longform_schemas import ContentKind, GeneratorItem
from longform_schemas.utils import (
    StructuredOutputError,
    normalize_generator_result,
    safe_parse_json_array,
)

from ..models import ProviderOverride
from ..providers import resolve_provider_config
from .prompts import GENERATOR_SYSTEM_PROMPTS, GENERATOR_USER_PROMPT

SERVICE_NAME = "continuity"
logger = logging.getLogger(__name__)


class StructuredGenerationError(RuntimeError):
    """The model answer could not be turned into records; the caller may retry."""


@dataclass
class StructuredGenerationResult:
    kind: ContentKind
    items: list[GeneratorItem]
    model: str
    cost_usd: float | None


def parse_structured_items(text: str, kind: ContentKind) -> tuple[list, list[GeneratorItem]]:
    """Recover records from ``text`` and normalize them for ``kind``.

    Raises:
        StructuredOutputError: If no JSON array can be recovered.
    """

    try:
        records = safe_parse_json_array(text)
    except StructuredOutputError:
        observe_structured_parse(kind.value, service_name=SERVICE_NAME, status="error")
        raise
    items = normalize_generator_result(records, kind)
    observe_structured_parse(kind.value, service_name=SERVICE_NAME, status="success" if items else "empty")
    return records, items


async def generate_structured_items(
    kind: ContentKind | str,
    instructions: str,
    *,
    context: str = "",
    override: ProviderOverride | None = None,
    provider: LLMProvider | None = None,
) -> StructuredGenerationResult:
    kind = ContentKind(kind)
    if provider is None:
        provider = ProviderFactory.create(resolve_provider_config(override))

    request = ProviderRequest(
        prompt=GENERATOR_USER_PROMPT.format(context=context.strip() or "(none)", instructions=instructions),
        system_prompt=GENERATOR_SYSTEM_PROMPTS[kind],
        temperature=override.temperature if override and override.temperature is not None else 0.7,
        max_output_tokens=override.max_output_tokens if override else None,
        top_p=override.top_p if override else None,
        json_mode=True,
        metadata={"content_kind": kind.value},
    )

    with log_context(content_kind=kind.value, provider=getattr(provider, "name", None)):
        response = await provider.generate(request)
        observe_provider_response(
            operation=f"generate_{kind.value}",
            provider=getattr(provider, "name", "unknown"),
            service_name=SERVICE_NAME,
            response=response,
        )

        try:
            _, items = parse_structured_items(response.text, kind)
        except StructuredOutputError as exc:
            logger.warning("Could not recover structured output", extra={"latency_ms": response.latency_ms})
            raise StructuredGenerationError(f"Model returned no parseable {kind.value} list") from exc

        if not items:
            logger.warning("Structured output held no usable records")
            raise StructuredGenerationError(f"Model returned an empty {kind.value} list")

        logger.info(
            "Generated structured items",
            extra={
                "prompt_tokens": response.prompt_tokens,
                "completion_tokens": response.completion_tokens,
                "cost_usd": response.cost_usd,
            },
        )

    return StructuredGenerationResult(
        kind=kind,
        items=items,
        model=response.model,
        cost_usd=response.cost_usd,
    )


__all__ = [
    "StructuredGenerationError",
    "StructuredGenerationResult",
    "generate_structured_items",
    "parse_structured_items",
]
