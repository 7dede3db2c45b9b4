"""Tests for the novel store: publishing, deletes and cancellation tokens."""

import pytest

from longform_schemas import Chapter, ChapterSubtype, ChapterVersion, Novel, VersionType, Volume

from services.continuity.app.store import (
    ChapterNotFoundError,
    DeletionTombstoneSet,
    NovelNotFoundError,
    NovelStore,
)


def _novel_with_summary() -> tuple[Novel, list[Chapter], Chapter]:
    stories = [Chapter(title=f"Chapter {i}", content=f"Text {i}") for i in range(1, 5)]
    summary = Chapter(
        title="Small Summary (1-3)",
        content="recap",
        subtype=ChapterSubtype.SMALL_SUMMARY,
        summary_range="1-3",
    )
    novel = Novel(title="Novel", chapters=[*stories[:3], summary, stories[3]])
    return novel, stories, summary


def test_add_chapter_numbers_story_chapters() -> None:
    novel, _, _ = _novel_with_summary()
    store = NovelStore()
    store.put_novel(novel)

    added = store.add_chapter(novel.id)

    assert added.title == "Chapter 5"
    assert store.get_novel(novel.id).chapters[-1].id == added.id


def test_write_chapter_records_user_edit() -> None:
    novel, stories, _ = _novel_with_summary()
    store = NovelStore([novel])

    updated = store.write_chapter(novel.id, stories[0].id, "Rewritten opening")

    assert updated.content == "Rewritten opening"
    assert [v.type for v in updated.versions] == [VersionType.ORIGINAL, VersionType.USER_EDIT]
    assert store.get_chapter(novel.id, stories[0].id).content == "Rewritten opening"


def test_delete_story_chapter_cascades_to_summary() -> None:
    novel, stories, summary = _novel_with_summary()
    store = NovelStore([novel])

    deleted = store.delete_chapter(novel.id, stories[2].id)

    assert set(deleted) == {stories[2].id, summary.id}
    assert summary.id in store.tombstones_for(novel.id)
    assert [c.title for c in store.get_novel(novel.id).chapters] == ["Chapter 1", "Chapter 2", "Chapter 4"]


def test_delete_summary_chapter_only_removes_it() -> None:
    novel, stories, summary = _novel_with_summary()
    store = NovelStore([novel])

    assert store.delete_chapter(novel.id, summary.id) == [summary.id]
    assert len(store.get_novel(novel.id).chapters) == 4


def test_tombstones_block_resurrection_by_stale_updater() -> None:
    novel, stories, summary = _novel_with_summary()
    store = NovelStore([novel])
    stale = store.snapshot()

    store.delete_chapter(novel.id, stories[2].id)
    store.publish(lambda novels: stale)

    ids = {c.id for c in store.get_novel(novel.id).chapters}
    assert stories[2].id not in ids
    assert summary.id not in ids


def test_delete_volume_removes_its_chapters() -> None:
    kept = Chapter(title="Prologue", content="p", volume_id="vol-a")
    doomed = [Chapter(title=f"Part {i}", content="x", volume_id="vol-b") for i in range(2)]
    novel = Novel(
        title="Novel",
        chapters=[kept, *doomed],
        volumes=[Volume(id="vol-a", title="A"), Volume(id="vol-b", title="B")],
    )
    store = NovelStore([novel])

    deleted = store.delete_volume(novel.id, "vol-b")

    assert set(deleted) == {c.id for c in doomed}
    stored = store.get_novel(novel.id)
    assert [c.id for c in stored.chapters] == [kept.id]
    assert [v.id for v in stored.volumes] == ["vol-a"]


def test_move_chapter_recalibrates_summaries() -> None:
    novel, stories, summary = _novel_with_summary()
    store = NovelStore([novel])

    moved = store.move_chapter(novel.id, stories[3].id, 0)

    titles = [c.title for c in moved.chapters]
    assert titles[0] == "Chapter 4"
    recap = next(c for c in moved.chapters if c.id == summary.id)
    assert recap.summary_range == "2-4"


def test_move_summary_chapter_is_rejected() -> None:
    novel, _, summary = _novel_with_summary()
    store = NovelStore([novel])
    with pytest.raises(ValueError):
        store.move_chapter(novel.id, summary.id, 0)


def test_missing_lookups_raise() -> None:
    novel, _, _ = _novel_with_summary()
    store = NovelStore([novel])
    with pytest.raises(NovelNotFoundError):
        store.get_novel(Novel(title="Other").id)
    with pytest.raises(ChapterNotFoundError):
        store.get_chapter(novel.id, Chapter(title="ghost").id)


def test_cancel_pending_cancels_issued_tokens() -> None:
    novel, _, _ = _novel_with_summary()
    store = NovelStore([novel])
    first = store.issue_token(novel.id)
    second = store.issue_token(novel.id)
    store.release_token(novel.id, second)

    assert store.cancel_pending(novel.id, reason="user request") == 1
    assert first.cancelled
    assert first.reason == "user request"
    assert not second.cancelled
    assert store.cancel_pending(novel.id) == 0


def test_tombstone_set_filters() -> None:
    chapters = [Chapter(title="a"), Chapter(title="b")]
    tombstones = DeletionTombstoneSet([chapters[0].id])
    assert tombstones.filter(chapters) == [chapters[1]]
    assert len(tombstones) == 1


def test_put_novel_heals_dangling_active_version() -> None:
    versions = [
        ChapterVersion(id="a", content="first", timestamp=1, type=VersionType.ORIGINAL),
        ChapterVersion(id="b", content="second", timestamp=2, type=VersionType.USER_EDIT),
    ]
    broken = Chapter(title="Chapter 1", content="second", versions=versions, active_version_id="missing")
    novel = Novel(title="Novel", chapters=[broken])
    store = NovelStore()

    stored = store.put_novel(novel)

    assert stored.chapters[0].active_version_id == "b"
    assert store.get_chapter(novel.id, broken.id).active_version_id == "b"


def test_put_novel_seeds_versions_but_leaves_empty_chapters() -> None:
    novel = Novel(title="Novel", chapters=[Chapter(title="Chapter 1", content="Text"), Chapter(title="Chapter 2")])
    store = NovelStore()

    stored = store.put_novel(novel)

    seeded, empty = stored.chapters
    assert [v.type for v in seeded.versions] == [VersionType.ORIGINAL]
    assert seeded.active_version_id == seeded.versions[0].id
    assert empty.versions == []
    assert empty.active_version_id is None


def test_tombstones_are_kept_per_novel() -> None:
    novel, stories, _ = _novel_with_summary()
    other = Novel(title="Other", chapters=[Chapter(title="Chapter 1", content="x")])
    store = NovelStore([novel, other])

    store.delete_chapter(novel.id, stories[0].id)

    assert stories[0].id in store.tombstones_for(novel.id)
    assert len(store.tombstones_for(other.id)) == 0


def test_put_novel_does_not_restore_deleted_chapters() -> None:
    novel, stories, _ = _novel_with_summary()
    store = NovelStore()
    store.put_novel(novel)
    store.delete_chapter(novel.id, stories[0].id)

    stored = store.put_novel(novel)

    assert stories[0].id not in {c.id for c in stored.chapters}
