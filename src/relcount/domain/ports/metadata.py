"""Port for reading relationship metadata from the mapping layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from relcount.domain.counters.types import RelationKind


@runtime_checkable
class MetadataService(Protocol):
    """Describes the relationships of mapped entity types."""

    def relation_kinds(self, entity_type: type) -> Mapping[str, RelationKind]:
        """Return relationship field names mapped to their kind, in declaration order."""
        ...
