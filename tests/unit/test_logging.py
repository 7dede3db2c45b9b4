"""Tests for the JSON logging helpers."""

import json
import logging

from longform_observability import log_context, setup_logging
from longform_observability.logging import ContextFilter, JsonFormatter


def _record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("continuity.test", logging.INFO, __file__, 1, message, None, None)


def test_formatter_includes_bound_context() -> None:
    record = _record()
    with log_context(tier="small", summary_range="1-3", chapter_id=None):
        ContextFilter("continuity").filter(record)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "hello"
    assert payload["service"] == "continuity"
    assert payload["tier"] == "small"
    assert payload["summary_range"] == "1-3"
    assert "chapter_id" not in payload


def test_context_is_reset_after_block() -> None:
    with log_context(tier="big"):
        pass
    record = _record()
    ContextFilter("continuity").filter(record)
    assert "tier" not in json.loads(JsonFormatter().format(record))


def test_setup_logging_quiets_provider_sdks() -> None:
    setup_logging("continuity", "DEBUG", capture_warnings=False)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("openai").level == logging.WARNING
    assert logging.getLogger("httpx").propagate is False
