"""Best-effort recovery of JSON arrays from free-form model output.

Models asked for a JSON array routinely wrap it in markdown fences, add
commentary around it, stop mid-value when they hit a length cap, or put raw
newlines and tabs inside string values. :func:`safe_parse_json_array` applies
increasingly aggressive repairs until one of them parses:

1. strip fences and ``[JSON]`` markers, slice to the outermost brackets;
2. escape raw newlines/tabs (and drop carriage returns) inside strings;
3. drop remaining ASCII control characters;
4. close a truncated document after its last complete element;
5. unwrap ``{"key": [...]}`` to the inner list.

If the whole text still fails, every balanced ``[...]`` span is tried on its
own, and finally every balanced ``{...}`` span is collected as an object.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)

_FENCE_JSON = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_FENCE_ANY = re.compile(r"```[a-zA-Z0-9_-]*\s*([\s\S]*?)```")
_JSON_MARKER = re.compile(r"\[/?JSON\]", re.IGNORECASE)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

_CLOSERS = {"[": "]", "{": "}"}


class StructuredOutputError(ValueError):
    """Raised when no recovery stage yields a JSON array."""


def escape_string_controls(text: str) -> str:
    """Escape raw newlines and tabs, and drop carriage returns, inside JSON string literals only."""

    out: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if not in_string:
            if char == '"':
                in_string = True
            out.append(char)
            continue
        if escaped:
            escaped = False
            out.append(char)
        elif char == "\\":
            escaped = True
            out.append(char)
        elif char == '"':
            in_string = False
            out.append(char)
        elif char == "\n":
            out.append("\\n")
        elif char == "\r":
            continue
        elif char == "\t":
            out.append("\\t")
        else:
            out.append(char)
    return "".join(out)


def _strip_wrappers(text: str) -> str:
    processed = text.strip()
    processed = _FENCE_JSON.sub(r"\1", processed)
    processed = _FENCE_ANY.sub(r"\1", processed)
    processed = _JSON_MARKER.sub("", processed)

    starts = [index for index in (processed.find("["), processed.find("{")) if index != -1]
    if starts:
        start = min(starts)
        end = max(processed.rfind("]"), processed.rfind("}"))
        if end > start:
            processed = processed[start : end + 1]
    return processed


def _as_array(parsed: Any) -> Optional[list[Any]]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        if len(parsed) == 1:
            (only_value,) = parsed.values()
            if isinstance(only_value, list):
                return only_value
        return [parsed]
    return None


def _loads_array(text: str) -> Optional[list[Any]]:
    try:
        return _as_array(json.loads(text))
    except json.JSONDecodeError:
        return None


def _close_truncated(text: str) -> Optional[str]:
    """Cut an unbalanced document after its last complete element and close what is still open.

    The cut point is the last closing bracket that completes an element of the
    outermost array (or, when no array was opened, a complete top-level value).
    Returns ``None`` when the text is balanced or has no such cut point.
    """

    stack: list[str] = []
    in_string = False
    escaped = False
    array_depth: Optional[int] = None
    cut: Optional[tuple[int, list[str]]] = None

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(char)
            if char == "[" and array_depth is None:
                array_depth = len(stack)
        elif char in ("]", "}"):
            if not stack:
                continue
            stack.pop()
            if len(stack) <= (array_depth if array_depth is not None else 0):
                cut = (index, list(stack))

    if not stack and not in_string:
        return None
    if cut is None:
        return None

    index, still_open = cut
    return text[: index + 1] + "".join(_CLOSERS[opener] for opener in reversed(still_open))


def _sanitize_and_parse(content: str) -> Optional[list[Any]]:
    """Run the single-document stages against ``content``; ``None`` if all of them fail."""

    candidate = escape_string_controls(_strip_wrappers(content))
    parsed = _loads_array(candidate)
    if parsed is not None:
        return parsed

    candidate = _CONTROL_CHARS.sub("", candidate)
    parsed = _loads_array(candidate)
    if parsed is not None:
        logger.debug("Recovered JSON after stripping control characters")
        return parsed

    repaired = _close_truncated(candidate)
    if repaired is not None:
        parsed = _loads_array(repaired)
        if parsed is not None:
            logger.debug("Recovered JSON after closing a truncated document")
            return parsed
    return None


def _balanced_spans(text: str, opener: str) -> Iterator[str]:
    closer = _CLOSERS[opener]
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            if depth == 0:
                start = index
            depth += 1
        elif char == closer and depth > 0:
            depth -= 1
            if depth == 0 and start != -1:
                yield text[start : index + 1]
                start = -1


def safe_parse_json_array(text: str) -> list[Any]:
    """Parse ``text`` into a list, repairing the usual model formatting damage.

    Raises:
        StructuredOutputError: If no stage produces a list. Callers should
            treat this as a retryable generation failure.
    """

    if text is None or not str(text).strip():
        raise StructuredOutputError("Model returned empty output")
    text = str(text)

    parsed = _sanitize_and_parse(text)
    if parsed is not None:
        return parsed

    for span in _balanced_spans(text, "["):
        parsed = _sanitize_and_parse(span)
        if parsed is not None:
            logger.debug("Recovered JSON array from an embedded span")
            return parsed

    objects: list[Any] = []
    for span in _balanced_spans(text, "{"):
        for attempt in (span, escape_string_controls(span)):
            try:
                obj = json.loads(attempt)
            except json.JSONDecodeError:
                continue
            if isinstance(obj, dict) and obj:
                objects.append(obj)
            break
    if objects:
        logger.debug("Recovered %d standalone JSON objects", len(objects))
        return objects

    raise StructuredOutputError("Unable to recover a JSON array from model output")


__all__ = ["StructuredOutputError", "escape_string_controls", "safe_parse_json_array"]
