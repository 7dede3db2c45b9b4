"""Typed records produced by structured generation."""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel


class OutlineItem(BaseModel):
    title: str
    summary: str


class CharacterItem(BaseModel):
    name: str
    bio: str


class WorldviewItem(BaseModel):
    item: str
    setting: str


class InspirationItem(BaseModel):
    title: str
    content: str


GeneratorItem = Union[OutlineItem, CharacterItem, WorldviewItem, InspirationItem]
