"""Shared observability helpers for the continuity service."""

from .logging import log_context, setup_logging
from .metrics import (
    observe_provider_response,
    observe_structured_parse,
    observe_summary_tier,
    setup_fastapi_metrics,
)

__all__ = [
    "setup_logging",
    "log_context",
    "setup_fastapi_metrics",
    "observe_provider_response",
    "observe_structured_parse",
    "observe_summary_tier",
]
