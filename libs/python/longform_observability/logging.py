"""Centralised logging configuration helpers."""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator


_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("longform_log_context", default={})
_QUIET_LOGGERS = ("httpx", "openai", "google_genai")


class ContextFilter(logging.Filter):
    """Attach the fields bound through :func:`log_context` to each record."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - inherited docstring
        context = _LOG_CONTEXT.get()
        if context:
            record.observability_context = context
            for key, value in context.items():
                if not hasattr(record, key):
                    setattr(record, key, value)
        if getattr(record, "service", None) is None:
            record.service = self.service_name
        return True


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    _RESERVED = {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
        "observability_context",
    }

    _WHITELIST = {
        "service",
        "tier",
        "novel_id",
        "chapter_id",
        "summary_range",
        "content_kind",
        "provider",
        "route",
        "method",
        "status_code",
        "prompt_tokens",
        "completion_tokens",
        "latency_ms",
        "cost_usd",
    }

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited docstring
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "observability_context", {})
        if isinstance(context, dict):
            for key, value in context.items():
                if value is not None:
                    payload.setdefault(key, value)

        for key in self._WHITELIST:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        for key, value in record.__dict__.items():
            if key in self._RESERVED or key in payload or key.startswith("_"):
                continue
            if self._is_json_safe(value):
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)

    @staticmethod
    def _is_json_safe(value: Any) -> bool:
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            return False
        return True


def setup_logging(
    service_name: str,
    level: str | int | None = None,
    *,
    capture_warnings: bool | None = None,
) -> None:
    """Configure JSON logging on stdout for the current process.

    ``level`` defaults to ``LONGFORM_LOG_LEVEL`` (or ``INFO``). Calling this
    again replaces the handlers, so it is safe to invoke once per entrypoint.
    """

    resolved_level = level or os.getenv("LONGFORM_LOG_LEVEL", "INFO")
    handlers = ["default"]
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "longform_observability.logging.JsonFormatter",
            }
        },
        "filters": {
            "context": {
                "()": "longform_observability.logging.ContextFilter",
                "service_name": service_name,
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "json",
                "filters": ["context"],
            }
        },
        "root": {
            "level": resolved_level,
            "handlers": handlers,
        },
        # Provider SDKs log every HTTP round trip at INFO.
        "loggers": {
            name: {"handlers": handlers, "level": "WARNING", "propagate": False}
            for name in _QUIET_LOGGERS
        },
    }

    logging.config.dictConfig(config)

    if capture_warnings is None:
        capture_env = os.getenv("LONGFORM_CAPTURE_WARNINGS")
        capture = capture_env.lower() in {"1", "true", "t", "yes", "y"} if capture_env else False
    else:
        capture = capture_warnings

    if capture:
        logging.captureWarnings(True)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind contextual fields to every log line emitted inside the block."""

    updated = dict(_LOG_CONTEXT.get())
    for key, value in kwargs.items():
        if value is None:
            updated.pop(key, None)
        else:
            updated[key] = str(value) if not isinstance(value, (int, float, bool, str)) else value
    token = _LOG_CONTEXT.set(updated)
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)
