"""Rolling two-tier chapter summarization.

Each write event runs :func:`check_and_generate_summary` on a snapshot of the
novel list. When the written chapter closes a small or big interval inside its
volume, the matching tier asks the model for a recap and merges the result
into the store through ``publish``. Tiers are evaluated small first, so a big
summary can be built from the small summaries that precede it, including one
produced moments earlier by the same pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from longform_observability import log_context, observe_provider_response, observe_summary_tier
from longform_providers import LLMProvider, ProviderFactory, ProviderRequest
from longform_schemas import Chapter, Novel, SummaryTier
from longform_schemas.utils import (
    SummaryRange,
    position_in_volume,
    range_for_batch,
    stable_content,
    upsert_summary_chapter,
    volume_story_chapters,
)
from longform_schemas.utils.ranges import chapters_in_range, parse_range_or_none, same_volume

from ..cancellation import CancellationToken
from ..models import SummaryConfig
from ..providers import MOCK_PROVIDER, summary_provider_config
from .prompts import (
    RECENT_DETAIL_HEADER,
    SMALL_SOURCE_TEMPLATE,
    SUMMARY_SOURCE_TEMPLATE,
    SUMMARY_SYSTEM_PROMPT,
)

SERVICE_NAME = "continuity"
logger = logging.getLogger(__name__)

NovelsUpdater = Callable[[List[Novel]], List[Novel]]
Publish = Callable[[NovelsUpdater], None]


@dataclass(frozen=True)
class TierPlan:
    tier: SummaryTier
    summary_range: SummaryRange
    anchor_id: UUID
    volume_id: Optional[str]


def _interval_plans(
    chapters: Sequence[Chapter], target: Chapter, config: SummaryConfig
) -> list[TierPlan]:
    position = position_in_volume(chapters, target.id)
    if position is None:
        return []
    volume_chapters = volume_story_chapters(chapters, target.volume_id)

    plans = []
    for tier, interval in (
        (SummaryTier.SMALL, config.small_summary_interval),
        (SummaryTier.BIG, config.big_summary_interval),
    ):
        if position % interval != 0:
            continue
        batch = volume_chapters[position - interval : position]
        plans.append(
            TierPlan(tier, range_for_batch(chapters, batch), batch[-1].id, target.volume_id)
        )
    return plans


def _closing_plan(
    chapters: Sequence[Chapter], volume_id: Optional[str], tier: SummaryTier
) -> Optional[TierPlan]:
    """Plan a summary from the end of the last ``tier`` summary to the volume's last chapter."""

    volume_chapters = volume_story_chapters(chapters, volume_id)
    if not volume_chapters:
        return None
    volume_range = range_for_batch(chapters, volume_chapters)

    covered_end = volume_range.start - 1
    for chapter in chapters:
        if chapter.subtype != tier.subtype or not same_volume(chapter.volume_id, volume_id):
            continue
        parsed = parse_range_or_none(chapter.summary_range)
        if parsed is not None:
            covered_end = max(covered_end, parsed.end)

    start = covered_end + 1
    if start > volume_range.end:
        return None
    if tier is SummaryTier.BIG and start == volume_range.end:
        return None
    return TierPlan(tier, SummaryRange(start, volume_range.end), volume_chapters[-1].id, volume_id)


def _story_source(
    chapters: Sequence[Chapter], summary_range: SummaryRange, volume_id: Optional[str]
) -> str:
    selected = [
        chapter
        for chapter in chapters_in_range(chapters, summary_range)
        if same_volume(chapter.volume_id, volume_id)
    ]
    return "\n\n".join(
        SMALL_SOURCE_TEMPLATE.format(title=chapter.title, content=stable_content(chapter))
        for chapter in selected
    )


def build_source_text(
    plan: TierPlan, chapters: Sequence[Chapter], config: SummaryConfig
) -> str:
    """Assemble the material a tier summarizes.

    Small summaries read raw chapter text. Big summaries read the small
    summaries lying inside their range, falling back to raw text when there
    are none.
    """

    if plan.tier is SummaryTier.SMALL:
        return _story_source(chapters, plan.summary_range, plan.volume_id)

    recaps = []
    for chapter in chapters:
        if chapter.subtype != SummaryTier.SMALL.subtype or not chapter.content:
            continue
        parsed = parse_range_or_none(chapter.summary_range)
        if parsed is not None and plan.summary_range.contains(parsed):
            recaps.append((parsed, chapter))
    if not recaps:
        return _story_source(chapters, plan.summary_range, plan.volume_id)

    recaps.sort(key=lambda entry: entry[0].start)
    source = "\n\n".join(
        SUMMARY_SOURCE_TEMPLATE.format(summary_range=str(parsed), content=chapter.content)
        for parsed, chapter in recaps
    )

    if config.context_chapter_count > 0:
        detail_start = max(
            plan.summary_range.start, plan.summary_range.end - config.context_chapter_count + 1
        )
        detail = _story_source(
            chapters, SummaryRange(detail_start, plan.summary_range.end), plan.volume_id
        )
        if detail:
            source = f"{source}\n\n{RECENT_DETAIL_HEADER}\n{detail}"
    return source


def merge_summary(novel_id: UUID, summary: Chapter, anchor_id: UUID) -> NovelsUpdater:
    """Updater that upserts ``summary`` into the current chapters of ``novel_id``.

    The summary is dropped if its anchor chapter no longer exists.
    """

    def updater(novels: List[Novel]) -> List[Novel]:
        updated = []
        for novel in novels:
            if novel.id == novel_id:
                chapters, merged = upsert_summary_chapter(
                    novel.chapters, summary, anchor_id, require_anchor=True
                )
                if merged is None:
                    logger.info(
                        "Anchor chapter no longer exists; discarding summary",
                        extra={"novel_id": str(novel_id), "summary_range": summary.summary_range},
                    )
                else:
                    novel = novel.model_copy(update={"chapters": chapters})
            updated.append(novel)
        return updated

    return updater


async def _run_tier(
    plan: TierPlan,
    chapters: list[Chapter],
    *,
    novel_id: UUID,
    publish: Publish,
    config: SummaryConfig,
    provider: LLMProvider,
    token: Optional[CancellationToken],
) -> list[Chapter]:
    start = perf_counter()
    status = "success"
    with log_context(tier=plan.tier.value, summary_range=str(plan.summary_range)):
        try:
            if token is not None and token.cancelled:
                status = "cancelled"
                return chapters

            source_text = build_source_text(plan, chapters, config)
            if not source_text.strip():
                status = "skipped"
                logger.info("No source text for summary range")
                return chapters

            prompt = (
                config.small_summary_prompt
                if plan.tier is SummaryTier.SMALL
                else config.big_summary_prompt
            )
            request = ProviderRequest(
                prompt=f"{source_text}\n\n{prompt}",
                system_prompt=SUMMARY_SYSTEM_PROMPT,
                temperature=config.temperature,
                metadata={"tier": plan.tier.value, "summary_range": str(plan.summary_range)},
            )
            response = await provider.generate(request)
            observe_provider_response(
                operation=f"summary_{plan.tier.value}",
                provider=getattr(provider, "name", config.provider_name),
                service_name=SERVICE_NAME,
                response=response,
            )

            if token is not None and token.cancelled:
                status = "cancelled"
                logger.info("Summary pass cancelled after model call")
                return chapters

            content = (response.text or "").strip()
            if not content:
                status = "empty"
                logger.warning("Model returned an empty summary")
                return chapters

            candidate = Chapter(
                title=f"{plan.tier.label} ({plan.summary_range})",
                content=content,
                subtype=plan.tier.subtype,
                summary_range=str(plan.summary_range),
                volume_id=plan.volume_id,
            )
            chapters, stored = upsert_summary_chapter(chapters, candidate, plan.anchor_id)
            publish(merge_summary(novel_id, stored, plan.anchor_id))
            logger.info(
                "Published summary chapter",
                extra={
                    "prompt_tokens": response.prompt_tokens,
                    "completion_tokens": response.completion_tokens,
                    "cost_usd": response.cost_usd,
                },
            )
        except Exception:
            status = "error"
            logger.exception("Summary tier failed")
        finally:
            observe_summary_tier(
                plan.tier.value,
                perf_counter() - start,
                service_name=SERVICE_NAME,
                status=status,
            )
    return chapters


async def check_and_generate_summary(
    chapter_id: UUID,
    latest_content: str,
    novel_id: UUID,
    novels: Sequence[Novel],
    publish: Publish,
    config: SummaryConfig,
    *,
    provider: Optional[LLMProvider] = None,
    token: Optional[CancellationToken] = None,
    force_final: bool = False,
) -> Optional[Novel]:
    """Generate the summaries due after ``chapter_id`` was written.

    Returns the novel with its chapters as this pass left them, or ``None``
    when nothing could run (no credentials, a provider that cannot be built,
    an unknown novel or chapter, or an already cancelled token). Failures
    inside a tier are logged and never raised.
    """

    if token is not None and token.cancelled:
        return None

    novel = next((candidate for candidate in novels if candidate.id == novel_id), None)
    if novel is None:
        logger.debug("Novel missing from snapshot", extra={"novel_id": str(novel_id)})
        return None

    chapters = [
        chapter.model_copy(update={"content": latest_content}) if chapter.id == chapter_id else chapter
        for chapter in novel.chapters
    ]
    target = next((c for c in chapters if c.id == chapter_id and c.is_story), None)
    if target is None:
        logger.debug(
            "Target chapter not in snapshot; skipping summaries",
            extra={"novel_id": str(novel_id), "chapter_id": str(chapter_id)},
        )
        return None

    if provider is None:
        if not config.api_key and config.provider_name.lower() != MOCK_PROVIDER:
            logger.info("No API key configured; skipping summaries")
            return None
        try:
            provider = ProviderFactory.create(summary_provider_config(config))
        except Exception:
            logger.exception(
                "Could not build summary provider; skipping summaries",
                extra={"novel_id": str(novel_id), "provider": config.provider_name},
            )
            return None

    run = dict(novel_id=novel_id, publish=publish, config=config, provider=provider, token=token)
    with log_context(novel_id=novel_id, chapter_id=chapter_id):
        for plan in _interval_plans(chapters, target, config):
            chapters = await _run_tier(plan, chapters, **run)

        if force_final:
            for tier in (SummaryTier.SMALL, SummaryTier.BIG):
                plan = _closing_plan(chapters, target.volume_id, tier)
                if plan is not None:
                    chapters = await _run_tier(plan, chapters, **run)

    return novel.model_copy(update={"chapters": chapters})


__all__ = [
    "TierPlan",
    "build_source_text",
    "check_and_generate_summary",
    "merge_summary",
]
