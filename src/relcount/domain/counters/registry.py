"""Static registration table of counter-tracked entity types."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from relcount.config.errors import ConfigurationError
from relcount.domain.counters.markers import CountableRelation, declared_relations

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = logging.getLogger(__name__)


class CountableRegistry:
    """Maps entity types to the relations whose targets keep a counter.

    Populated once at application startup, either explicitly through
    :meth:`register` or by :meth:`scan`-ning classes decorated with
    :func:`~relcount.domain.counters.markers.countable_entity`. Lookups honour
    inheritance: a subclass of a registered type is tracked as well.
    """

    def __init__(self) -> None:
        self._relations: dict[type, dict[str, CountableRelation]] = {}

    def register(self, entity_type: type, *relations: CountableRelation) -> None:
        """Register ``entity_type`` with the given relation markers."""

        table = self._relations.setdefault(entity_type, {})
        for relation in relations:
            existing = table.get(relation.field_name)
            if existing is not None and existing != relation:
                raise ConfigurationError(
                    f"Conflicting countable relation for "
                    f"{entity_type.__qualname__}.{relation.field_name}"
                )
            table[relation.field_name] = relation
        log.debug(
            "Registered countable entity %s with relations %s",
            entity_type.__qualname__,
            sorted(table),
        )

    def scan(self, *entity_types: type) -> None:
        """Register every decorated type in ``entity_types``."""

        for entity_type in entity_types:
            relations = declared_relations(entity_type)
            if not relations:
                raise ConfigurationError(
                    f"{entity_type.__qualname__} declares no countable relations"
                )
            self.register(entity_type, *relations)

    def is_tracked(self, entity_type: type) -> bool:
        return any(cls in self._relations for cls in entity_type.__mro__)

    def relations_for(self, entity_type: type) -> Mapping[str, CountableRelation]:
        """Return relation markers for ``entity_type``, including inherited ones."""

        merged: dict[str, CountableRelation] = {}
        for cls in reversed(entity_type.__mro__):
            merged.update(self._relations.get(cls, {}))
        return merged

    def entity_types(self) -> Iterable[type]:
        return tuple(self._relations)

    def clear(self) -> None:
        """Drop all registrations. Primarily for tests."""

        self._relations.clear()
