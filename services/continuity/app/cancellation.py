"""Cooperative cancellation for background summary passes."""

from __future__ import annotations

from typing import Optional


class CancellationToken:
    """Flag checked by a summary pass before each tier and after each model call.

    Cancelling never interrupts a call already in flight; the pass notices at
    its next checkpoint and stops without publishing.
    """

    __slots__ = ("_cancelled", "reason")

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str | None = None) -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason


__all__ = ["CancellationToken"]
