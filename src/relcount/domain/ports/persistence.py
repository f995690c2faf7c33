"""Ports for writing counter values."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from relcount.domain.counters.types import RelationKind


@runtime_checkable
class CounterStore(Protocol):
    """Executes counter updates against the backing store."""

    def recount(
        self,
        source_type: type,
        relation_name: str,
        kind: RelationKind,
        target: object,
        counter_field: str,
    ) -> None:
        """Set ``counter_field`` on ``target`` to the number of referencing local rows."""
        ...

    def count_referencing(
        self,
        source_type: type,
        relation_name: str,
        kind: RelationKind,
        target: object,
    ) -> int: ...

    def set_counter(self, target: object, counter_field: str, value: int) -> None: ...

    def identity_of(self, target: object) -> tuple[object, ...]: ...
