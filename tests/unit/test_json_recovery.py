"""Tests for recovering JSON arrays from messy model output."""

import pytest

from longform_schemas.utils import StructuredOutputError, safe_parse_json_array
from longform_schemas.utils.json_recovery import escape_string_controls


def test_plain_array_parses() -> None:
    assert safe_parse_json_array('[{"title": "A", "summary": "B"}]') == [{"title": "A", "summary": "B"}]


def test_markdown_fence_is_stripped() -> None:
    text = 'Sure!\n```json\n[{"name": "Ann", "bio": "Pilot"}]\n```\nLet me know.'
    assert safe_parse_json_array(text) == [{"name": "Ann", "bio": "Pilot"}]


def test_json_markers_are_stripped() -> None:
    text = '[JSON][{"item": "Moon", "setting": "Two of them"}][/JSON]'
    assert safe_parse_json_array(text) == [{"item": "Moon", "setting": "Two of them"}]


def test_surrounding_prose_is_sliced_away() -> None:
    text = 'Here are the items:\n[{"title": "A", "summary": "B"}]\nHope this helps!'
    assert safe_parse_json_array(text) == [{"title": "A", "summary": "B"}]


def test_raw_newlines_and_tabs_inside_strings() -> None:
    text = '[{"title": "Line one\nLine two\tTabbed\r", "summary": "ok"}]'
    result = safe_parse_json_array(text)
    assert result == [{"title": "Line one\nLine two\tTabbed", "summary": "ok"}]


def test_control_characters_are_dropped() -> None:
    text = '[{"title": "bell\x07", "summary": "s\x01"}]'
    assert safe_parse_json_array(text) == [{"title": "bell", "summary": "s"}]


def test_truncated_array_keeps_complete_elements() -> None:
    text = '[{"title": "A", "summary": "B"}, {"title": "C", "summ'
    assert safe_parse_json_array(text) == [{"title": "A", "summary": "B"}]


def test_truncated_array_inside_fence() -> None:
    text = '```json\n[{"name": "Ann", "bio": "Pilot"}, {"name": "Bo", "bio": "Eng'
    assert safe_parse_json_array(text) == [{"name": "Ann", "bio": "Pilot"}]


def test_wrapper_object_with_single_list_unwraps() -> None:
    text = '{"characters": [{"name": "Ann", "bio": "Pilot"}]}'
    assert safe_parse_json_array(text) == [{"name": "Ann", "bio": "Pilot"}]


def test_plain_object_becomes_single_element_list() -> None:
    assert safe_parse_json_array('{"title": "A", "summary": "B"}') == [{"title": "A", "summary": "B"}]


def test_embedded_array_span_is_found() -> None:
    text = 'See [draft] and then [{"title": "A", "summary": "B"}]'
    assert safe_parse_json_array(text) == [{"title": "A", "summary": "B"}]


def test_standalone_objects_are_collected() -> None:
    text = 'First idea {"title": "A"} and a second {"title": "B"} with [no closing'
    result = safe_parse_json_array(text)
    assert {"title": "A"} in result
    assert {"title": "B"} in result


@pytest.mark.parametrize("text", ["", "   ", "I could not produce any items."])
def test_unrecoverable_output_raises(text: str) -> None:
    with pytest.raises(StructuredOutputError):
        safe_parse_json_array(text)


def test_structured_output_error_is_value_error() -> None:
    assert issubclass(StructuredOutputError, ValueError)


def test_escape_leaves_text_outside_strings_alone() -> None:
    assert escape_string_controls('[\n"a\nb"\n]') == '[\n"a\\nb"\n]'


def test_escaped_quote_does_not_end_string() -> None:
    assert escape_string_controls('"say \\"hi\\"\n"') == '"say \\"hi\\"\\n"'
