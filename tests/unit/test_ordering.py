"""Tests for summary placement, recalibration and delete cascades."""

from longform_schemas import Chapter, ChapterSubtype
from longform_schemas.utils import (
    cascade_summary_ids,
    recalibrate_summaries,
    sort_chapters,
    upsert_summary_chapter,
)


def _stories(count: int, volume_id: str | None = None) -> list[Chapter]:
    return [Chapter(title=f"Chapter {i}", content=f"Text {i}", volume_id=volume_id) for i in range(1, count + 1)]


def _small(summary_range: str, content: str = "recap") -> Chapter:
    return Chapter(
        title=f"Small Summary ({summary_range})",
        content=content,
        subtype=ChapterSubtype.SMALL_SUMMARY,
        summary_range=summary_range,
    )


def _big(summary_range: str) -> Chapter:
    return Chapter(
        title=f"Big Summary ({summary_range})",
        content="overview",
        subtype=ChapterSubtype.BIG_SUMMARY,
        summary_range=summary_range,
    )


def test_sort_places_summary_after_range_end() -> None:
    s1, s2, s3 = _stories(3)
    small = _small("1-3")
    assert sort_chapters([small, s1, s2, s3]) == [s1, s2, s3, small]


def test_sort_orders_small_before_big_at_same_anchor() -> None:
    stories = _stories(6)
    big = _big("1-6")
    small = _small("4-6")
    ordered = sort_chapters([*stories, big, small])
    assert ordered[-2:] == [small, big]


def test_sort_stacks_unresolvable_summaries_at_volume_end() -> None:
    stories = _stories(2)
    orphan = _small("7-9")
    ordered = sort_chapters([orphan, *stories])
    assert ordered == [*stories, orphan]


def test_sort_without_stories_keeps_order() -> None:
    chapters = [_small("1-1"), _big("1-2")]
    assert sort_chapters(chapters) == chapters


def test_recalibrate_follows_preceding_story_chapter() -> None:
    s1, s2, s3 = _stories(3)
    stale = _small("1-3")
    (_, _, recalibrated, _) = recalibrate_summaries([s1, s2, stale, s3])
    assert recalibrated.id == stale.id
    assert recalibrated.summary_range == "1-2"
    assert recalibrated.title == "Small Summary (1-2)"


def test_recalibrate_clamps_to_volume_start() -> None:
    first = _stories(2, "vol-a")
    second = _stories(2, "vol-b")
    summary = _small("1-3")
    chapters = recalibrate_summaries([*first, *second, summary])
    assert chapters[-1].summary_range == "3-4"
    assert chapters[-1].volume_id == "vol-b"


def test_recalibrate_drops_duplicate_keys() -> None:
    s1, s2 = _stories(2)
    keep = _small("1-2", "kept")
    duplicate = _small("1-2", "dropped")
    chapters = recalibrate_summaries([s1, s2, keep, duplicate])
    assert [c.content for c in chapters if c.subtype] == ["kept"]


def test_cascade_finds_summaries_ending_at_removed_chapter() -> None:
    s1, s2, s3, s4 = _stories(4)
    ends_at_3 = _small("1-3")
    ends_at_4 = _small("2-4")
    chapters = [s1, s2, s3, ends_at_3, s4, ends_at_4]
    assert cascade_summary_ids(chapters, {s3.id}) == {ends_at_3.id}


def test_upsert_inserts_after_anchor_past_existing_summaries() -> None:
    s1, s2, s3, s4 = _stories(4)
    existing = _small("1-3")
    big = _big("1-3")
    chapters, stored = upsert_summary_chapter([s1, s2, s3, existing, s4], big, s3.id)
    assert stored is big
    assert chapters == [s1, s2, s3, existing, big, s4]


def test_upsert_replaces_content_of_existing_key() -> None:
    s1, s2, s3 = _stories(3)
    existing = _small("1-3", "old")
    chapters, stored = upsert_summary_chapter([s1, s2, s3, existing], _small("1-3", "new"), s3.id)
    assert stored.id == existing.id
    assert stored.content == "new"
    assert len(chapters) == 4


def test_upsert_with_missing_anchor() -> None:
    s1, s2 = _stories(2)
    other = _stories(1)[0]
    chapters, stored = upsert_summary_chapter([s1, s2], _small("1-2"), other.id, require_anchor=True)
    assert stored is None
    assert chapters == [s1, s2]

    appended, stored = upsert_summary_chapter([s1, s2], _small("1-2"), other.id)
    assert appended[-1] is stored
