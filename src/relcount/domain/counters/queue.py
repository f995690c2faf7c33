"""Per-transaction worklist of pending recount tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from relcount.domain.counters.types import RecountTask


class UpdateQueue:
    """Ordered, append-only list of :class:`RecountTask` objects.

    Duplicates are kept; recounts are idempotent and the materializer collapses
    repeated generic updates while draining. Not thread-safe: one queue per session.
    """

    __slots__ = ("_tasks",)

    def __init__(self) -> None:
        self._tasks: list[RecountTask] = []

    def push(self, task: RecountTask) -> None:
        self._tasks.append(task)

    def __iter__(self) -> Iterator[RecountTask]:
        return iter(tuple(self._tasks))

    def __len__(self) -> int:
        return len(self._tasks)

    def __bool__(self) -> bool:
        return bool(self._tasks)

    def clear(self) -> None:
        self._tasks.clear()
