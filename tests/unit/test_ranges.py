"""Tests for story-relative numbering and summary ranges."""

import pytest

from longform_schemas import Chapter, ChapterSubtype
from longform_schemas.utils import (
    SummaryRange,
    position_in_volume,
    range_for_batch,
    story_index,
    volume_story_chapters,
)
from longform_schemas.utils.ranges import chapters_in_range, parse_range_or_none, same_volume


def _stories(count: int, volume_id: str | None = None) -> list[Chapter]:
    return [Chapter(title=f"Chapter {i}", content=f"Text {i}", volume_id=volume_id) for i in range(1, count + 1)]


def _summary(summary_range: str) -> Chapter:
    return Chapter(title="Small Summary", subtype=ChapterSubtype.SMALL_SUMMARY, summary_range=summary_range)


def test_story_index_ignores_summary_chapters() -> None:
    s1, s2, s3 = _stories(3)
    plain = [s1, s2, s3]
    with_summaries = [_summary("1-1"), s1, s2, _summary("1-2"), _summary("1-2"), s3, _summary("1-3")]
    for chapters in (plain, with_summaries):
        assert [story_index(chapters, c.id) for c in (s1, s2, s3)] == [1, 2, 3]


def test_story_index_of_summary_is_none() -> None:
    summary = _summary("1-1")
    assert story_index([*_stories(1), summary], summary.id) is None


def test_position_in_volume_counts_only_that_volume() -> None:
    first = _stories(2, "vol-a")
    second = _stories(3, "vol-b")
    chapters = [*first, *second]
    assert position_in_volume(chapters, second[2].id) == 3
    assert story_index(chapters, second[2].id) == 5
    assert range_for_batch(chapters, second) == SummaryRange(3, 5)


def test_unassigned_volume_matches_empty_string() -> None:
    assert same_volume(None, "")
    assert not same_volume("vol-a", None)
    chapters = [Chapter(title="a", volume_id=""), Chapter(title="b")]
    assert len(volume_story_chapters(chapters, None)) == 2


def test_range_parse_and_render() -> None:
    parsed = SummaryRange.parse("4-6")
    assert (parsed.start, parsed.end, parsed.span) == (4, 6, 3)
    assert str(parsed) == "4-6"
    assert SummaryRange(1, 6).contains(parsed)
    assert not parsed.contains(SummaryRange(1, 3))


@pytest.mark.parametrize("value", ["", "3", "a-b", "5-2", "0-1"])
def test_invalid_ranges(value: str) -> None:
    assert parse_range_or_none(value) is None


def test_chapters_in_range_uses_story_indices() -> None:
    stories = _stories(4)
    chapters = [stories[0], _summary("1-1"), *stories[1:]]
    assert chapters_in_range(chapters, SummaryRange(2, 3)) == stories[1:3]


def test_range_for_empty_batch_raises() -> None:
    with pytest.raises(ValueError):
        range_for_batch(_stories(1), [])
