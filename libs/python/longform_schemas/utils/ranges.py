"""Story-relative chapter numbering and summary range helpers.

All numbering here is 1-based and counts story chapters only, in list order.
Summary chapters never shift a story chapter's index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
from uuid import UUID

from ..models.novel import Chapter


@dataclass(frozen=True, order=True)
class SummaryRange:
    """Inclusive story-index range rendered as ``"start-end"``."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1 or self.end < self.start:
            raise ValueError(f"Invalid summary range {self.start}-{self.end}")

    @classmethod
    def parse(cls, value: str) -> "SummaryRange":
        parts = (value or "").strip().split("-")
        if len(parts) != 2:
            raise ValueError(f"Invalid summary range {value!r}")
        try:
            start, end = int(parts[0]), int(parts[1])
        except ValueError as exc:
            raise ValueError(f"Invalid summary range {value!r}") from exc
        return cls(start, end)

    @property
    def span(self) -> int:
        return self.end - self.start + 1

    def contains(self, other: "SummaryRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def parse_range_or_none(value: Optional[str]) -> Optional[SummaryRange]:
    if not value:
        return None
    try:
        return SummaryRange.parse(value)
    except ValueError:
        return None


def same_volume(left: Optional[str], right: Optional[str]) -> bool:
    """Compare volume ids, treating ``None`` and ``""`` as the same unassigned volume."""

    return (left or None) == (right or None)


def story_chapters(chapters: Iterable[Chapter]) -> list[Chapter]:
    return [chapter for chapter in chapters if chapter.is_story]


def story_index(chapters: Sequence[Chapter], chapter_id: UUID) -> Optional[int]:
    """Return the 1-based story index of ``chapter_id``, or ``None`` if it is not a story chapter."""

    for index, chapter in enumerate(story_chapters(chapters), start=1):
        if chapter.id == chapter_id:
            return index
    return None


def volume_story_chapters(chapters: Iterable[Chapter], volume_id: Optional[str]) -> list[Chapter]:
    return [
        chapter
        for chapter in chapters
        if chapter.is_story and same_volume(chapter.volume_id, volume_id)
    ]


def position_in_volume(chapters: Sequence[Chapter], chapter_id: UUID) -> Optional[int]:
    """1-based position of a story chapter among the story chapters of its own volume."""

    target = next((c for c in chapters if c.id == chapter_id and c.is_story), None)
    if target is None:
        return None
    for position, chapter in enumerate(volume_story_chapters(chapters, target.volume_id), start=1):
        if chapter.id == chapter_id:
            return position
    return None


def range_for_batch(chapters: Sequence[Chapter], batch: Sequence[Chapter]) -> SummaryRange:
    """Map a contiguous batch of story chapters to its global story-index range."""

    if not batch:
        raise ValueError("Cannot build a range for an empty batch")
    index_by_id = {chapter.id: index for index, chapter in enumerate(story_chapters(chapters), start=1)}
    try:
        return SummaryRange(index_by_id[batch[0].id], index_by_id[batch[-1].id])
    except KeyError as exc:
        raise ValueError("Batch contains a chapter that is not a story chapter") from exc


def chapters_in_range(chapters: Sequence[Chapter], summary_range: SummaryRange) -> list[Chapter]:
    return story_chapters(chapters)[summary_range.start - 1 : summary_range.end]
