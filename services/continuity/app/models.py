"""Pydantic models for the continuity API and summary configuration."""

from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from longform_schemas import Chapter, ContentKind, GeneratorItem

from .summaries.prompts import DEFAULT_BIG_SUMMARY_PROMPT, DEFAULT_SMALL_SUMMARY_PROMPT


class ProviderOverride(BaseModel):
    name: Optional[str] = Field(None, description="Provider identifier: openai, gemini, mock, ...")
    model: Optional[str] = None
    base_url: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_output_tokens: Optional[int] = Field(None, ge=16)
    top_p: Optional[float] = Field(None, ge=0, le=1)


class SummaryConfig(BaseModel):
    """Settings for one summarization pass, as supplied with the write event."""

    api_key: str = ""
    base_url: Optional[str] = None
    model: str = ""
    provider_name: str = Field("openai", description="Provider used for summary calls")
    small_summary_interval: int = Field(3, ge=1)
    big_summary_interval: int = Field(6, ge=1)
    small_summary_prompt: str = DEFAULT_SMALL_SUMMARY_PROMPT
    big_summary_prompt: str = DEFAULT_BIG_SUMMARY_PROMPT
    context_chapter_count: int = Field(
        0, ge=0, description="Raw trailing chapters appended to big summaries built from recaps"
    )
    temperature: float = Field(0.5, ge=0, le=2)


class ChapterCreateRequest(BaseModel):
    title: Optional[str] = None
    volume_id: Optional[str] = None


class ChapterWriteRequest(BaseModel):
    content: str
    summary: Optional[SummaryConfig] = None
    force_final: bool = False


class ChapterWriteResponse(BaseModel):
    chapter: Chapter
    summaries_scheduled: bool


class DeleteResponse(BaseModel):
    deleted_ids: List[UUID]


class CancelResponse(BaseModel):
    cancelled: int


class StructuredParseRequest(BaseModel):
    text: str
    kind: Optional[ContentKind] = None


class StructuredParseResponse(BaseModel):
    records: List[Any]
    items: List[GeneratorItem] = Field(default_factory=list)


class StructuredGenerateRequest(BaseModel):
    kind: ContentKind
    instructions: str = Field(..., min_length=1)
    context: str = ""
    provider: Optional[ProviderOverride] = None


class StructuredGenerateResponse(BaseModel):
    kind: ContentKind
    items: List[GeneratorItem]
    model: str
    cost_usd: Optional[float] = None
