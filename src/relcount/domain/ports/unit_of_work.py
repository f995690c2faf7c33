"""Unit-of-work abstraction for coordinating a counter-tracked session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType


@runtime_checkable
class UnitOfWork(Protocol):
    """Transaction boundary whose commit triggers counter materialization."""

    def __enter__(self) -> UnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def add(self, entity: object) -> None: ...

    def delete(self, entity: object) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
