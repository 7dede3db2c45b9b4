"""Map loosely-keyed model records onto the fixed generator schemas."""

from __future__ import annotations

from typing import Any, Callable, Sequence

from ..enums import ContentKind
from ..models.generators import (
    CharacterItem,
    GeneratorItem,
    InspirationItem,
    OutlineItem,
    WorldviewItem,
)

# For each kind: (primary field aliases, secondary field aliases, record factory).
_FIELD_ALIASES: dict[ContentKind, tuple[Sequence[str], Sequence[str], Callable[[str, str], GeneratorItem]]] = {
    ContentKind.OUTLINE: (
        ("title", "chapter", "name", "header", "label"),
        ("summary", "content", "description", "plot", "setting"),
        lambda first, second: OutlineItem(title=first, summary=second),
    ),
    ContentKind.CHARACTER: (
        ("name", "character", "role"),
        ("bio", "description", "background", "setting"),
        lambda first, second: CharacterItem(name=first, bio=second),
    ),
    ContentKind.WORLDVIEW: (
        ("item", "name", "key", "object"),
        ("setting", "description", "content", "value"),
        lambda first, second: WorldviewItem(item=first, setting=second),
    ),
    ContentKind.INSPIRATION: (
        ("title", "name", "topic", "header"),
        ("content", "summary", "description", "plot"),
        lambda first, second: InspirationItem(title=first, content=second),
    ),
}

_TEXT_KEYS = ("text", "content", "setting", "description")


def flatten_field(value: Any) -> str:
    """Render any JSON value as text, labelling nested object keys instead of dropping them."""

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return "\n".join(flatten_field(entry) for entry in value)
    if isinstance(value, dict):
        for key in _TEXT_KEYS:
            if isinstance(value.get(key), str) and value[key]:
                return value[key]
        lines = []
        for key, nested in value.items():
            rendered = flatten_field(nested)
            if "\n" in rendered or len(rendered) > 20:
                lines.append(f"{key}:\n{rendered}")
            else:
                lines.append(f"{key}: {rendered}")
        return "\n".join(lines)
    return ""


def _pick(item: dict[str, Any], aliases: Sequence[str], position: int) -> str:
    for alias in aliases:
        if item.get(alias):
            return flatten_field(item[alias])
    values = list(item.values())
    if len(values) > position and values[position]:
        return flatten_field(values[position])
    return ""


def normalize_generator_result(data: Any, kind: ContentKind | str) -> list[GeneratorItem]:
    """Coerce recovered records into typed items for ``kind``.

    Nested lists are flattened one level. A single wrapper object without an
    identifying field is replaced by its first list value. Records that are
    not objects are dropped.
    """

    kind = ContentKind(kind)
    if not isinstance(data, list):
        return []

    if data and isinstance(data[0], list):
        data = [entry for group in data for entry in (group if isinstance(group, list) else [group])]

    if (
        len(data) == 1
        and isinstance(data[0], dict)
        and not any(data[0].get(key) for key in ("title", "name", "item"))
    ):
        nested = next((value for value in data[0].values() if isinstance(value, list)), None)
        if nested is not None:
            data = nested

    primary, secondary, build = _FIELD_ALIASES[kind]
    return [
        build(_pick(item, primary, 0), _pick(item, secondary, 1))
        for item in data
        if isinstance(item, dict)
    ]


__all__ = ["flatten_field", "normalize_generator_result"]
