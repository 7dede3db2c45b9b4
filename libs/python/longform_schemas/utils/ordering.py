"""Placement of summary chapters inside the canonical chapter list."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Sequence
from uuid import UUID

from ..enums import ChapterSubtype
from ..models.novel import Chapter
from .ranges import SummaryRange, parse_range_or_none, same_volume, story_chapters

logger = logging.getLogger(__name__)

_TITLE_RANGE = re.compile(r"\(\d+-\d+\)")


def find_summary(
    chapters: Sequence[Chapter], subtype: ChapterSubtype, summary_range: str
) -> Optional[int]:
    """Index of the summary chapter keyed by ``(subtype, summary_range)``, if any."""

    for index, chapter in enumerate(chapters):
        if chapter.subtype == subtype and chapter.summary_range == summary_range:
            return index
    return None


def upsert_summary_chapter(
    chapters: Sequence[Chapter],
    summary: Chapter,
    anchor_id: UUID,
    *,
    require_anchor: bool = False,
) -> tuple[list[Chapter], Optional[Chapter]]:
    """Insert or update ``summary`` keyed by its subtype and range.

    An existing chapter with the same key keeps its id and title and only takes
    the new content. A new chapter goes right after ``anchor_id``, past any
    summary chapters already clustered behind it. With ``require_anchor`` a
    missing anchor means the chapter is not inserted at all; otherwise it is
    appended at the end.
    """

    updated = list(chapters)
    existing_index = find_summary(updated, summary.subtype, summary.summary_range)
    if existing_index is not None:
        merged = updated[existing_index].model_copy(update={"content": summary.content})
        updated[existing_index] = merged
        return updated, merged

    anchor_index = next((i for i, c in enumerate(updated) if c.id == anchor_id), None)
    if anchor_index is None:
        if require_anchor:
            return updated, None
        updated.append(summary)
        return updated, summary

    insert_at = anchor_index + 1
    while insert_at < len(updated) and updated[insert_at].is_summary:
        insert_at += 1
    updated.insert(insert_at, summary)
    return updated, summary


def cascade_summary_ids(chapters: Sequence[Chapter], removed_ids: Iterable[UUID]) -> set[UUID]:
    """Ids of summary chapters whose range ends at one of the removed story chapters."""

    removed = set(removed_ids)
    stories = story_chapters(chapters)
    cascade: set[UUID] = set()
    for chapter in chapters:
        if not chapter.is_summary:
            continue
        parsed = parse_range_or_none(chapter.summary_range)
        if parsed is None or parsed.end > len(stories):
            continue
        if stories[parsed.end - 1].id in removed:
            cascade.add(chapter.id)
    return cascade


def _summary_sort_key(chapter: Chapter) -> tuple[int, int]:
    parsed = parse_range_or_none(chapter.summary_range)
    start = parsed.start if parsed else 0
    # Small summaries first, then the narrower (later-starting) range first.
    return (0 if chapter.subtype == ChapterSubtype.SMALL_SUMMARY else 1, -start)


def sort_chapters(chapters: Sequence[Chapter]) -> list[Chapter]:
    """Canonical order: volumes by first appearance, each summary behind the chapter its range ends at.

    Summaries whose range cannot be resolved are stacked after the last story
    chapter of their volume. A summary never ends up first in the list.
    """

    stories = story_chapters(chapters)
    if not stories:
        return list(chapters)

    by_parent: dict[UUID, list[Chapter]] = {}
    orphans: list[Chapter] = []
    for chapter in chapters:
        if chapter.is_story:
            continue
        parsed = parse_range_or_none(chapter.summary_range)
        if parsed is not None and parsed.end <= len(stories):
            by_parent.setdefault(stories[parsed.end - 1].id, []).append(chapter)
        else:
            orphans.append(chapter)

    volume_order: list[Optional[str]] = []
    stories_by_volume: dict[Optional[str], list[Chapter]] = {}
    for story in stories:
        volume_key = story.volume_id or None
        if volume_key not in stories_by_volume:
            volume_order.append(volume_key)
            stories_by_volume[volume_key] = []
        stories_by_volume[volume_key].append(story)

    result: list[Chapter] = []
    for volume_key in volume_order:
        for story in stories_by_volume[volume_key]:
            result.append(story)
            result.extend(sorted(by_parent.get(story.id, []), key=_summary_sort_key))
        result.extend(o for o in orphans if same_volume(o.volume_id, volume_key))

    placed = {chapter.id for chapter in result}
    result.extend(chapter for chapter in chapters if chapter.id not in placed)

    if len(result) > 1 and result[0].is_summary:
        logger.warning("Summary chapter sorted to the top; moving it below the first story chapter",
                       extra={"chapter_id": str(result[0].id)})
        misplaced = result.pop(0)
        first_story = next(i for i, chapter in enumerate(result) if chapter.is_story)
        result.insert(first_story + 1, misplaced)

    return result


def recalibrate_summaries(chapters: Sequence[Chapter]) -> list[Chapter]:
    """Re-derive each summary's range and volume from the story chapter right before it.

    The span of the old range is preserved but never reaches back past the
    first story chapter of the anchor's volume. If two summaries end up with
    the same key, the first one wins and the later one is dropped.
    """

    stories = story_chapters(chapters)
    index_by_id = {story.id: index for index, story in enumerate(stories, start=1)}

    recalibrated: list[Chapter] = []
    anchor: Optional[Chapter] = None
    for chapter in chapters:
        if chapter.is_story:
            anchor = chapter
            recalibrated.append(chapter)
            continue

        if anchor is None:
            if stories:
                chapter = chapter.model_copy(
                    update={"summary_range": "1-1", "volume_id": stories[0].volume_id}
                )
            recalibrated.append(chapter)
            continue

        end = index_by_id[anchor.id]
        old = parse_range_or_none(chapter.summary_range) or SummaryRange(1, 1)
        start = max(1, end - old.span + 1)
        volume_first = next(s for s in stories if same_volume(s.volume_id, anchor.volume_id))
        start = max(start, index_by_id[volume_first.id])
        new_range = str(SummaryRange(start, end))

        if new_range != chapter.summary_range or not same_volume(chapter.volume_id, anchor.volume_id):
            logger.info(
                "Recalibrated summary chapter",
                extra={
                    "chapter_id": str(chapter.id),
                    "summary_range": new_range,
                    "previous_range": chapter.summary_range,
                },
            )
            chapter = chapter.model_copy(
                update={
                    "summary_range": new_range,
                    "volume_id": anchor.volume_id,
                    "title": _TITLE_RANGE.sub(f"({new_range})", chapter.title),
                }
            )
        recalibrated.append(chapter)

    seen: set[tuple[Optional[ChapterSubtype], Optional[str]]] = set()
    deduplicated: list[Chapter] = []
    for chapter in recalibrated:
        if chapter.is_summary:
            key = (chapter.subtype, chapter.summary_range)
            if key in seen:
                logger.warning(
                    "Dropping duplicate summary chapter after recalibration",
                    extra={"chapter_id": str(chapter.id), "summary_range": chapter.summary_range},
                )
                continue
            seen.add(key)
        deduplicated.append(chapter)
    return deduplicated
