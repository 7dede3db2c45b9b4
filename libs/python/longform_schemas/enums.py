"""Enum definitions shared across the continuity engine."""

from __future__ import annotations

from enum import Enum


class ChapterSubtype(str, Enum):
    STORY = "story"
    SMALL_SUMMARY = "small_summary"
    BIG_SUMMARY = "big_summary"


class VersionType(str, Enum):
    ORIGINAL = "original"
    OPTIMIZED = "optimized"
    USER_EDIT = "user_edit"


class SummaryTier(str, Enum):
    SMALL = "small"
    BIG = "big"

    @property
    def subtype(self) -> ChapterSubtype:
        return ChapterSubtype.SMALL_SUMMARY if self is SummaryTier.SMALL else ChapterSubtype.BIG_SUMMARY

    @property
    def label(self) -> str:
        return "Small Summary" if self is SummaryTier.SMALL else "Big Summary"


class ContentKind(str, Enum):
    OUTLINE = "outline"
    CHARACTER = "character"
    WORLDVIEW = "worldview"
    INSPIRATION = "inspiration"
