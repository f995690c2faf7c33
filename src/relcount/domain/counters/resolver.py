"""Resolve which relationship fields of an entity are counter-tracked."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from relcount.config.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from relcount.domain.counters.markers import CountableRelation
    from relcount.domain.counters.registry import CountableRegistry
    from relcount.domain.counters.types import RelationKind
    from relcount.domain.ports.metadata import MetadataService

log = logging.getLogger(__name__)


class RelationResolver:
    """Combines mapping metadata with registered markers.

    Resolved fields, relationship kinds and markers are cached per entity type;
    both inputs are static once the application has started. Call
    :meth:`clear_cache` after registering more types on a live registry.
    """

    def __init__(self, registry: CountableRegistry, metadata: MetadataService) -> None:
        self.registry = registry
        self.metadata = metadata
        self._cache: dict[type, tuple[str, ...]] = {}
        self._kinds: dict[type, Mapping[str, RelationKind]] = {}
        self._markers: dict[type, Mapping[str, CountableRelation]] = {}

    def is_supported(self, entity: object) -> bool:
        return self.registry.is_tracked(type(entity))

    def resolve(self, entity: object) -> tuple[str, ...]:
        return self.resolve_type(type(entity))

    def resolve_type(self, entity_type: type) -> tuple[str, ...]:
        cached = self._cache.get(entity_type)
        if cached is not None:
            return cached

        markers = self._markers_for(entity_type)
        kinds = self._kinds_for(entity_type)

        resolved: list[str] = []
        for field_name, kind in kinds.items():
            if field_name not in markers:
                continue
            if not kind.is_countable:
                raise ConfigurationError(
                    f"Unsupported relation type for countable relation "
                    f"{entity_type.__qualname__}.{field_name}: countable relations support "
                    f"only many-to-one or many-to-many relationships"
                )
            resolved.append(field_name)

        unmapped = sorted(set(markers) - set(kinds))
        if unmapped:
            raise ConfigurationError(
                f"Countable relation marker on {entity_type.__qualname__} "
                f"for fields that are not relationships: {', '.join(unmapped)}"
            )

        result = tuple(resolved)
        self._cache[entity_type] = result
        log.debug("Resolved countable relations for %s: %s", entity_type.__qualname__, result)
        return result

    def kind_of(self, entity_type: type, field_name: str) -> RelationKind:
        return self._kinds_for(entity_type)[field_name]

    def marker_for(self, entity_type: type, field_name: str) -> CountableRelation:
        return self._markers_for(entity_type)[field_name]

    def clear_cache(self) -> None:
        self._cache.clear()
        self._kinds.clear()
        self._markers.clear()

    def _kinds_for(self, entity_type: type) -> Mapping[str, RelationKind]:
        kinds = self._kinds.get(entity_type)
        if kinds is None:
            kinds = dict(self.metadata.relation_kinds(entity_type))
            self._kinds[entity_type] = kinds
        return kinds

    def _markers_for(self, entity_type: type) -> Mapping[str, CountableRelation]:
        markers = self._markers.get(entity_type)
        if markers is None:
            markers = self.registry.relations_for(entity_type)
            self._markers[entity_type] = markers
        return markers
