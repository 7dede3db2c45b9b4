"""Helpers for the per-chapter version history."""

from __future__ import annotations

import time
from typing import Optional

from ..enums import VersionType
from ..models.novel import Chapter, ChapterVersion


def _now_ms() -> int:
    return int(time.time() * 1000)


def ensure_chapter_versions(chapter: Chapter, *, now_ms: Optional[int] = None) -> Chapter:
    """Return ``chapter`` with a usable version history.

    A chapter that already has versions only gets its ``active_version_id``
    repaired, falling back to the most recent version. A chapter without
    versions is seeded with an ``original`` version from ``content`` (or the
    legacy ``source_content``) plus an ``optimized`` one for legacy optimized
    text. When there is no text at all the chapter is returned untouched: an
    empty original would later overwrite edits that have not been saved yet.
    """

    if chapter.versions:
        if any(version.id == chapter.active_version_id for version in chapter.versions):
            return chapter
        return chapter.model_copy(update={"active_version_id": chapter.versions[-1].id})

    initial_content = chapter.content or chapter.source_content or ""
    if not initial_content.strip():
        return chapter

    base_time = now_ms if now_ms is not None else _now_ms()
    versions = [
        ChapterVersion(
            id=f"v_{base_time}_orig",
            content=initial_content,
            timestamp=base_time,
            type=VersionType.ORIGINAL,
        )
    ]
    if chapter.optimized_content and chapter.optimized_content != initial_content:
        versions.append(
            ChapterVersion(
                id=f"v_{base_time}_opt",
                content=chapter.optimized_content,
                timestamp=base_time + 1,
                type=VersionType.OPTIMIZED,
            )
        )

    active_id = versions[0].id
    if chapter.showing_version == "optimized" and len(versions) > 1:
        active_id = versions[1].id

    return chapter.model_copy(update={"versions": versions, "active_version_id": active_id})


def active_version(chapter: Chapter) -> Optional[ChapterVersion]:
    for version in chapter.versions:
        if version.id == chapter.active_version_id:
            return version
    return chapter.versions[-1] if chapter.versions else None


def stable_content(chapter: Chapter) -> str:
    """Text to summarize: live content, else the original version, else the latest non-empty one."""

    if chapter.content and chapter.content.strip():
        return chapter.content
    if chapter.versions:
        original = next(
            (v for v in chapter.versions if v.type == VersionType.ORIGINAL and v.content), None
        )
        if original is not None:
            return original.content
        latest = next((v for v in reversed(chapter.versions) if v.content), None)
        if latest is not None:
            return latest.content
    return chapter.content or ""


def record_version(
    chapter: Chapter,
    content: str,
    version_type: VersionType = VersionType.USER_EDIT,
    *,
    now_ms: Optional[int] = None,
) -> Chapter:
    """Append ``content`` as a new active version and make it the live text.

    Writing the text that the active version already holds is a no-op.
    """

    timestamp = now_ms if now_ms is not None else _now_ms()
    seeded = ensure_chapter_versions(chapter, now_ms=timestamp)
    current = active_version(seeded)
    if current is not None and current.content == content:
        return seeded.model_copy(update={"content": content})

    if not seeded.versions and not content.strip():
        return seeded.model_copy(update={"content": content})

    effective_type = version_type
    if seeded.versions:
        timestamp = max(timestamp, seeded.versions[-1].timestamp + 1)
    else:
        # The first text a chapter ever receives is its original.
        effective_type = VersionType.ORIGINAL
    version = ChapterVersion(
        id=f"v_{timestamp}_{effective_type.value}",
        content=content,
        timestamp=timestamp,
        type=effective_type,
    )
    return seeded.model_copy(
        update={
            "versions": [*seeded.versions, version],
            "active_version_id": version.id,
            "content": content,
        }
    )
