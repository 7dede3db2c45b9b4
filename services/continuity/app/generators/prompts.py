"""Prompts used for structured outline, character, worldview and inspiration generation."""

from __future__ import annotations

from longform_schemas import ContentKind

_JSON_RULES = """
Respond with a JSON array only. Do not wrap it in markdown fences or add commentary.
Every element must be an object with exactly these string fields: {fields}.
""".strip()

GENERATOR_SYSTEM_PROMPTS = {
    ContentKind.OUTLINE: (
        "You are a story architect who plans novels chapter by chapter. Each outline entry names "
        "one chapter and summarizes what happens in it.\n"
        + _JSON_RULES.format(fields='"title", "summary"')
    ),
    ContentKind.CHARACTER: (
        "You are a character designer for long-form fiction. Each entry describes one character: "
        "their role, personality, goals and history.\n"
        + _JSON_RULES.format(fields='"name", "bio"')
    ),
    ContentKind.WORLDVIEW: (
        "You are a worldbuilder. Each entry defines one element of the setting, such as a place, "
        "faction, rule of magic or piece of history.\n"
        + _JSON_RULES.format(fields='"item", "setting"')
    ),
    ContentKind.INSPIRATION: (
        "You are a brainstorming partner for novelists. Each entry is one distinct story idea "
        "with a short title and a paragraph developing it.\n"
        + _JSON_RULES.format(fields='"title", "content"')
    ),
}

GENERATOR_USER_PROMPT = """
Existing material:
{context}

Request:
{instructions}
""".strip()
