from .json_recovery import StructuredOutputError, safe_parse_json_array
from .normalizers import normalize_generator_result
from .ordering import (
    cascade_summary_ids,
    recalibrate_summaries,
    sort_chapters,
    upsert_summary_chapter,
)
from .ranges import (
    SummaryRange,
    position_in_volume,
    range_for_batch,
    story_chapters,
    story_index,
    volume_story_chapters,
)
from .versions import active_version, ensure_chapter_versions, record_version, stable_content

__all__ = [
    "StructuredOutputError",
    "safe_parse_json_array",
    "normalize_generator_result",
    "cascade_summary_ids",
    "recalibrate_summaries",
    "sort_chapters",
    "upsert_summary_chapter",
    "SummaryRange",
    "position_in_volume",
    "range_for_batch",
    "story_chapters",
    "story_index",
    "volume_story_chapters",
    "active_version",
    "ensure_chapter_versions",
    "record_version",
    "stable_content",
]
