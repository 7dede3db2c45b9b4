"""Tests for chapter version history helpers."""

from longform_schemas import Chapter, ChapterVersion, VersionType
from longform_schemas.utils import active_version, ensure_chapter_versions, record_version, stable_content


def test_seeds_original_from_content() -> None:
    chapter = ensure_chapter_versions(Chapter(title="One", content="Hello"), now_ms=1000)
    assert [(v.id, v.type) for v in chapter.versions] == [("v_1000_orig", VersionType.ORIGINAL)]
    assert chapter.active_version_id == "v_1000_orig"


def test_legacy_fields_become_versions() -> None:
    legacy = Chapter(
        title="One",
        source_content="Draft",
        optimized_content="Polished",
        showing_version="optimized",
    )
    chapter = ensure_chapter_versions(legacy, now_ms=1000)
    assert [v.content for v in chapter.versions] == ["Draft", "Polished"]
    assert chapter.active_version_id == "v_1000_opt"
    assert active_version(chapter).content == "Polished"


def test_missing_active_version_heals_to_latest() -> None:
    versions = [
        ChapterVersion(id="v_1_orig", content="A", timestamp=1, type=VersionType.ORIGINAL),
        ChapterVersion(id="v_2_user_edit", content="B", timestamp=2, type=VersionType.USER_EDIT),
    ]
    chapter = Chapter(title="One", content="B", versions=versions, active_version_id="gone")
    assert ensure_chapter_versions(chapter).active_version_id == "v_2_user_edit"


def test_empty_chapter_is_left_alone() -> None:
    chapter = Chapter(title="Blank")
    healed = ensure_chapter_versions(chapter, now_ms=1000)
    assert healed.versions == []
    assert healed.active_version_id is None


def test_record_version_appends_user_edit() -> None:
    chapter = Chapter(title="One", content="A")
    updated = record_version(chapter, "B", now_ms=1000)
    assert [v.type for v in updated.versions] == [VersionType.ORIGINAL, VersionType.USER_EDIT]
    assert updated.versions[1].id == "v_1001_user_edit"
    assert updated.active_version_id == "v_1001_user_edit"
    assert updated.content == "B"


def test_record_same_content_is_noop() -> None:
    chapter = record_version(Chapter(title="One", content="A"), "B", now_ms=1000)
    again = record_version(chapter, "B", now_ms=2000)
    assert len(again.versions) == 2


def test_first_text_is_recorded_as_original() -> None:
    updated = record_version(Chapter(title="Blank"), "First draft", now_ms=5)
    assert [v.type for v in updated.versions] == [VersionType.ORIGINAL]
    assert updated.content == "First draft"


def test_stable_content_prefers_live_then_original() -> None:
    versions = [
        ChapterVersion(id="v_1_orig", content="Original", timestamp=1, type=VersionType.ORIGINAL),
        ChapterVersion(id="v_2_opt", content="Optimized", timestamp=2, type=VersionType.OPTIMIZED),
    ]
    assert stable_content(Chapter(title="x", content="Live", versions=versions)) == "Live"
    assert stable_content(Chapter(title="x", content="  ", versions=versions)) == "Original"
    assert stable_content(Chapter(title="x")) == ""
