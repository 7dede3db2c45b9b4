"""Shared data contracts for the long-form continuity engine."""

from .enums import ChapterSubtype, ContentKind, SummaryTier, VersionType
from .models import (
    Chapter,
    ChapterVersion,
    CharacterItem,
    GeneratorItem,
    InspirationItem,
    Novel,
    OutlineItem,
    Volume,
    WorldviewItem,
)

__all__ = [
    "ChapterSubtype",
    "ContentKind",
    "SummaryTier",
    "VersionType",
    "Chapter",
    "ChapterVersion",
    "Novel",
    "Volume",
    "OutlineItem",
    "CharacterItem",
    "WorldviewItem",
    "InspirationItem",
    "GeneratorItem",
]
