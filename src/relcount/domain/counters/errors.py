"""Errors raised while executing queued counter updates."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relcount.domain.counters.types import RecountTask


class MaterializationError(RuntimeError):
    """Raised when a counter update or custom hook fails.

    The originating exception is chained as ``__cause__``. Tasks still queued at the
    time of failure are discarded and must be regenerated by a later write.
    """

    def __init__(self, message: str, *, task: RecountTask | None = None) -> None:
        super().__init__(message)
        self.task = task
