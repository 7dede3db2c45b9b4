"""Prompt templates for rolling chapter summaries."""

from __future__ import annotations


SUMMARY_SYSTEM_PROMPT = "You are a professional editor helper."


DEFAULT_SMALL_SUMMARY_PROMPT = """
Summarize the chapters above into a compact plot recap for a writer continuing the novel.
Keep every named character, location, object and unresolved thread that a later chapter
could depend on. State events in the order they happen. Do not invent anything that is
not in the text, and do not comment on the writing quality. Answer with the recap only.
""".strip()


DEFAULT_BIG_SUMMARY_PROMPT = """
The material above is a sequence of stage recaps (and possibly raw chapter text) covering
one stretch of the novel. Merge it into a single long-range summary: the main plot line,
how each major character has changed, open conflicts, foreshadowing still waiting for a
payoff, and the state of the world at the end of the stretch. Drop moment-to-moment detail
that no longer matters. Answer with the summary only.
""".strip()


SMALL_SOURCE_TEMPLATE = "Chapter: {title}\n{content}"
SUMMARY_SOURCE_TEMPLATE = "Summary ({summary_range}):\n{content}"
RECENT_DETAIL_HEADER = "Recent chapter detail:"
