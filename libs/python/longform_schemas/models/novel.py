"""Domain models for novels, volumes, chapters and chapter versions.

Field names are snake_case in Python and camelCase on the wire, so a novel
serialised with ``model_dump(by_alias=True)`` matches the shape the editor
stores verbatim.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..enums import ChapterSubtype, VersionType

_RANGE_PATTERN = re.compile(r"^\d+-\d+$")


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChapterVersion(_WireModel):
    """One immutable text revision of a chapter."""

    id: str
    content: str
    timestamp: int = Field(..., description="Creation time in epoch milliseconds")
    type: VersionType


class Chapter(_WireModel):
    """A story chapter or a synthesized summary chapter.

    Story position is never stored: it is derived from the chapter's rank among
    story chapters in the novel's list.
    """

    id: UUID = Field(default_factory=uuid4)
    title: str = ""
    content: str = ""
    subtype: Optional[ChapterSubtype] = None
    summary_range: Optional[str] = Field(
        None, description="Inclusive 1-based story range 'start-end', summaries only"
    )
    volume_id: Optional[str] = None
    versions: list[ChapterVersion] = Field(default_factory=list)
    active_version_id: Optional[str] = None

    # Legacy single-revision fields, folded into ``versions`` on first touch.
    source_content: Optional[str] = None
    optimized_content: Optional[str] = None
    showing_version: Optional[Literal["source", "optimized"]] = None

    @field_validator("summary_range")
    @classmethod
    def validate_summary_range(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not _RANGE_PATTERN.match(value):
            raise ValueError(f"summary_range must look like 'start-end', got {value!r}")
        return value

    @property
    def is_story(self) -> bool:
        return self.subtype is None or self.subtype == ChapterSubtype.STORY

    @property
    def is_summary(self) -> bool:
        return not self.is_story


class Volume(_WireModel):
    """Logical grouping of chapters; chapters reference it by ``volume_id``."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    collapsed: bool = False


class Novel(_WireModel):
    """A novel and its canonical, ordered chapter list."""

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=200)
    chapters: list[Chapter] = Field(default_factory=list)
    volumes: list[Volume] = Field(default_factory=list)
    system_prompt: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def find_chapter(self, chapter_id: UUID) -> Optional[Chapter]:
        return next((chapter for chapter in self.chapters if chapter.id == chapter_id), None)
