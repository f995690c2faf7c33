"""Value types shared by the counter tracking engine."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum


class RelationKind(StrEnum):
    """Relationship shape as reported by the mapping layer."""

    TO_ONE = "to_one"
    TO_MANY = "to_many"
    OTHER = "other"

    @property
    def is_countable(self) -> bool:
        return self in (RelationKind.TO_ONE, RelationKind.TO_MANY)


@dataclass(frozen=True, slots=True)
class FieldChange:
    """Before/after view of a single relationship attribute.

    For to-one relations ``before`` holds the replaced reference (if any) and ``after``
    the new one. For collections they hold the snapshot and current membership.
    """

    before: tuple[object, ...] = ()
    after: tuple[object, ...] = ()


@dataclass(frozen=True, slots=True, eq=False)
class RecountTask:
    """Deferred request to recompute ``counter_field`` on each related entity."""

    source: object
    relation_name: str
    counter_field: str
    kind: RelationKind
    target: object | tuple[object, ...] | None = field(default=None)

    @property
    def is_collection(self) -> bool:
        return self.kind is RelationKind.TO_MANY

    def related_entities(self) -> Iterator[object]:
        """Yield the non-null related entities covered by this task."""

        if self.is_collection:
            members = self.target if isinstance(self.target, tuple) else ()
            yield from members
            return
        if self.target is not None:
            yield self.target

    @property
    def source_type(self) -> type[object]:
        return type(self.source)
