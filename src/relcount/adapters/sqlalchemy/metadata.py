"""Relationship metadata read from SQLAlchemy mappers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect
from sqlalchemy.orm import Mapper, RelationshipDirection

from relcount.config.errors import ConfigurationError
from relcount.domain.counters.types import RelationKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.orm import RelationshipProperty

_KIND_BY_DIRECTION: dict[RelationshipDirection, RelationKind] = {
    RelationshipDirection.MANYTOONE: RelationKind.TO_ONE,
    RelationshipDirection.MANYTOMANY: RelationKind.TO_MANY,
    RelationshipDirection.ONETOMANY: RelationKind.OTHER,
}


def mapper_for(entity_type: type) -> Mapper[object] | None:
    mapper = inspect(entity_type, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


def relationship_for(entity_type: type, relation_name: str) -> RelationshipProperty[object]:
    mapper = mapper_for(entity_type)
    if mapper is None or relation_name not in mapper.relationships:
        raise ConfigurationError(
            f"{entity_type.__qualname__}.{relation_name} is not a mapped relationship"
        )
    return mapper.relationships[relation_name]


class SqlAlchemyMetadataService:
    """Reports relationship kinds in mapper declaration order.

    A many-to-one relationship (including scalar one-to-one on the foreign key side)
    is to-one, a relationship through a ``secondary`` table is to-many, and the
    one-to-many side owned by the other entity is reported as ``OTHER``.
    """

    def relation_kinds(self, entity_type: type) -> Mapping[str, RelationKind]:
        mapper = mapper_for(entity_type)
        if mapper is None:
            return {}
        return {
            prop.key: _KIND_BY_DIRECTION.get(prop.direction, RelationKind.OTHER)
            for prop in mapper.relationships
        }


if TYPE_CHECKING:
    from relcount.domain.ports.metadata import MetadataService

    _metadata_check: MetadataService = SqlAlchemyMetadataService()
