"""In-memory novel store with functional publish and deletion tombstones."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from longform_schemas import Chapter, Novel
from longform_schemas.utils import (
    cascade_summary_ids,
    ensure_chapter_versions,
    recalibrate_summaries,
    record_version,
    sort_chapters,
    story_chapters,
)
from longform_schemas.utils.ranges import same_volume

from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

NovelsUpdater = Callable[[List[Novel]], List[Novel]]

_KEEP_VOLUME = object()


class NovelNotFoundError(LookupError):
    pass


class ChapterNotFoundError(LookupError):
    pass


class DeletionTombstoneSet:
    """Ids of deleted chapters that no later publish may bring back."""

    def __init__(self, ids: Iterable[UUID] = ()) -> None:
        self._ids: set[UUID] = set(ids)

    def add(self, ids: Iterable[UUID]) -> None:
        self._ids.update(ids)

    def __contains__(self, chapter_id: object) -> bool:
        return chapter_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def filter(self, chapters: Iterable[Chapter]) -> List[Chapter]:
        return [chapter for chapter in chapters if chapter.id not in self._ids]


class NovelStore:
    """Holds the canonical novel list.

    Every change goes through :meth:`publish` as an updater over the current
    list, so background summary passes merge into whatever the list looks like
    when they finish rather than into the snapshot they started from.
    """

    def __init__(self, novels: Iterable[Novel] = ()) -> None:
        self._novels: List[Novel] = list(novels)
        self._tombstones: Dict[UUID, DeletionTombstoneSet] = {}
        self._tokens: Dict[UUID, List[CancellationToken]] = {}

    # -- publishing -------------------------------------------------------

    def snapshot(self) -> List[Novel]:
        return list(self._novels)

    def tombstones_for(self, novel_id: UUID) -> DeletionTombstoneSet:
        """Deleted chapter ids of one novel; bounded by the chapters it ever held."""

        return self._tombstones.setdefault(novel_id, DeletionTombstoneSet())

    def publish(self, updater: NovelsUpdater) -> None:
        updated = updater(list(self._novels))
        cleaned: List[Novel] = []
        for novel in updated:
            tombstones = self._tombstones.get(novel.id)
            if not tombstones:
                cleaned.append(novel)
                continue
            kept = tombstones.filter(novel.chapters)
            if len(kept) != len(novel.chapters):
                logger.info(
                    "Dropped tombstoned chapters on publish",
                    extra={"novel_id": str(novel.id), "dropped": len(novel.chapters) - len(kept)},
                )
                novel = novel.model_copy(update={"chapters": kept})
            cleaned.append(novel)
        self._novels = cleaned

    def _replace_chapters(self, novel_id: UUID, build: Callable[[List[Chapter]], List[Chapter]]) -> Novel:
        self.get_novel(novel_id)

        def updater(novels: List[Novel]) -> List[Novel]:
            updated = []
            for novel in novels:
                if novel.id == novel_id:
                    novel = novel.model_copy(update={"chapters": build(list(novel.chapters))})
                updated.append(novel)
            return updated

        self.publish(updater)
        return self.get_novel(novel_id)

    # -- novels -----------------------------------------------------------

    def put_novel(self, novel: Novel) -> Novel:
        """Store ``novel``, replacing any novel with the same id.

        Chapters deleted earlier stay deleted, and every chapter gets a version
        history whose active pointer resolves.
        """

        kept = self.tombstones_for(novel.id).filter(novel.chapters)
        chapters = sort_chapters(recalibrate_summaries([ensure_chapter_versions(c) for c in kept]))
        stored = novel.model_copy(update={"chapters": chapters})

        def updater(novels: List[Novel]) -> List[Novel]:
            others = [existing for existing in novels if existing.id != stored.id]
            return [*others, stored]

        self.publish(updater)
        return stored

    def get_novel(self, novel_id: UUID) -> Novel:
        for novel in self._novels:
            if novel.id == novel_id:
                return novel
        raise NovelNotFoundError(f"Novel {novel_id} not found")

    def get_chapter(self, novel_id: UUID, chapter_id: UUID) -> Chapter:
        chapter = self.get_novel(novel_id).find_chapter(chapter_id)
        if chapter is None:
            raise ChapterNotFoundError(f"Chapter {chapter_id} not found in novel {novel_id}")
        return chapter

    # -- chapters ---------------------------------------------------------

    def add_chapter(
        self,
        novel_id: UUID,
        *,
        title: Optional[str] = None,
        volume_id: Optional[str] = None,
    ) -> Chapter:
        """Append an empty story chapter, titled ``Chapter N`` unless a title is given."""

        novel = self.get_novel(novel_id)
        number = len(story_chapters(novel.chapters)) + 1
        chapter = Chapter(title=title or f"Chapter {number}", volume_id=volume_id or None)

        def build(chapters: List[Chapter]) -> List[Chapter]:
            healed = [ensure_chapter_versions(existing) for existing in [*chapters, chapter]]
            return sort_chapters(recalibrate_summaries(healed))

        self._replace_chapters(novel_id, build)
        logger.info("Added chapter", extra={"novel_id": str(novel_id), "chapter_id": str(chapter.id)})
        return chapter

    def write_chapter(self, novel_id: UUID, chapter_id: UUID, content: str) -> Chapter:
        """Store new text for a chapter and record it as a user edit."""

        self.get_chapter(novel_id, chapter_id)

        def build(chapters: List[Chapter]) -> List[Chapter]:
            return [
                record_version(chapter, content) if chapter.id == chapter_id else chapter
                for chapter in chapters
            ]

        self._replace_chapters(novel_id, build)
        return self.get_chapter(novel_id, chapter_id)

    def move_chapter(
        self,
        novel_id: UUID,
        chapter_id: UUID,
        index: int,
        *,
        volume_id=_KEEP_VOLUME,
    ) -> Novel:
        """Move a story chapter to ``index`` in the list, optionally into another volume.

        Summaries follow the story chapter in front of them afterwards, so their
        ranges are re-derived from the new order.
        """

        chapter = self.get_chapter(novel_id, chapter_id)
        if chapter.is_summary:
            raise ValueError("Summary chapters are placed automatically and cannot be moved")
        if volume_id is not _KEEP_VOLUME:
            chapter = chapter.model_copy(update={"volume_id": volume_id or None})

        def build(chapters: List[Chapter]) -> List[Chapter]:
            remaining = [existing for existing in chapters if existing.id != chapter_id]
            position = max(0, min(index, len(remaining)))
            remaining.insert(position, chapter)
            return sort_chapters(recalibrate_summaries(remaining))

        return self._replace_chapters(novel_id, build)

    def delete_chapter(self, novel_id: UUID, chapter_id: UUID) -> List[UUID]:
        """Delete a chapter and every summary whose range ends at it.

        Returns the deleted ids, which are also tombstoned.
        """

        chapter = self.get_chapter(novel_id, chapter_id)
        chapters = self.get_novel(novel_id).chapters
        removed = {chapter_id}
        if chapter.is_story:
            removed |= cascade_summary_ids(chapters, removed)
        return self._delete(novel_id, removed)

    def delete_volume(self, novel_id: UUID, volume_id: str) -> List[UUID]:
        """Delete a volume with its chapters and the summaries anchored to them."""

        novel = self.get_novel(novel_id)
        removed = {chapter.id for chapter in novel.chapters if same_volume(chapter.volume_id, volume_id)}
        removed |= cascade_summary_ids(novel.chapters, removed)
        deleted = self._delete(novel_id, removed)

        def updater(novels: List[Novel]) -> List[Novel]:
            return [
                novel.model_copy(update={"volumes": [v for v in novel.volumes if v.id != volume_id]})
                if novel.id == novel_id
                else novel
                for novel in novels
            ]

        self.publish(updater)
        return deleted

    def _delete(self, novel_id: UUID, removed: set[UUID]) -> List[UUID]:
        tombstones = self.tombstones_for(novel_id)
        tombstones.add(removed)
        before = [chapter.id for chapter in self.get_novel(novel_id).chapters]
        self._replace_chapters(
            novel_id, lambda chapters: sort_chapters(recalibrate_summaries(tombstones.filter(chapters)))
        )
        deleted = [chapter_id for chapter_id in before if chapter_id in removed]
        logger.info(
            "Deleted chapters",
            extra={"novel_id": str(novel_id), "deleted": len(deleted)},
        )
        return deleted

    # -- cancellation -----------------------------------------------------

    def issue_token(self, novel_id: UUID) -> CancellationToken:
        token = CancellationToken()
        self._tokens.setdefault(novel_id, []).append(token)
        return token

    def release_token(self, novel_id: UUID, token: CancellationToken) -> None:
        tokens = self._tokens.get(novel_id)
        if tokens and token in tokens:
            tokens.remove(token)
            if not tokens:
                self._tokens.pop(novel_id, None)

    def cancel_pending(self, novel_id: UUID, reason: str | None = None) -> int:
        tokens = self._tokens.pop(novel_id, [])
        for token in tokens:
            token.cancel(reason)
        if tokens:
            logger.info("Cancelled pending summary passes", extra={"novel_id": str(novel_id), "count": len(tokens)})
        return len(tokens)


__all__ = [
    "ChapterNotFoundError",
    "DeletionTombstoneSet",
    "NovelNotFoundError",
    "NovelStore",
    "NovelsUpdater",
]
