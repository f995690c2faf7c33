"""Counter writes expressed as SQLAlchemy Core statements."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeAlias

from sqlalchemy import Column, and_, func, inspect, select, update
from sqlalchemy.orm import ColumnProperty, RelationshipDirection

from relcount.adapters.sqlalchemy.metadata import mapper_for, relationship_for
from relcount.config.errors import ConfigurationError
from relcount.domain.counters.types import RelationKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement, FromClause, Select, Table
    from sqlalchemy.orm import Mapper, RelationshipProperty, Session

log = logging.getLogger(__name__)

_RelatedValue: TypeAlias = "Callable[[Column[object]], ColumnElement[object] | object]"


class SqlAlchemyCounterStore:
    """Writes counters with a single correlated ``UPDATE`` per related row.

    To-one::

        UPDATE related SET counter = (
            SELECT count(*) FROM local WHERE local.fk = related.pk
        ) WHERE related.pk = :id

    To-many counts through the association table in the same statement, so neither
    path reads a count before writing it.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def recount(
        self,
        source_type: type,
        relation_name: str,
        kind: RelationKind,
        target: object,
        counter_field: str,
    ) -> None:
        related_mapper = self._mapper_of(target)
        counter_column = _counter_column(related_mapper, counter_field)
        table = counter_column.table
        prop = _checked_relationship(source_type, relation_name, kind)

        count = self._count_of(prop, kind, lambda column: _corresponding(table, column))
        stmt = (
            update(table)
            .where(*self._identity_criteria(related_mapper, table, target))
            .values({counter_column: count.scalar_subquery()})
        )
        self.session.execute(stmt)
        log.debug(
            "Recounted %s.%s via %s.%s",
            related_mapper.class_.__qualname__,
            counter_field,
            source_type.__qualname__,
            relation_name,
        )

    def count_referencing(
        self,
        source_type: type,
        relation_name: str,
        kind: RelationKind,
        target: object,
    ) -> int:
        """Return how many ``source_type`` rows reference ``target`` via ``relation_name``."""

        related_mapper = self._mapper_of(target)
        prop = _checked_relationship(source_type, relation_name, kind)
        values = dict(zip(related_mapper.primary_key, self.identity_of(target), strict=True))

        def bound_value(column: Column[object]) -> object:
            for pk_column, value in values.items():
                if pk_column is column or pk_column.shares_lineage(column):
                    return value
            raise ConfigurationError(
                f"{source_type.__qualname__}.{relation_name} references "
                f"{column} which is not a primary key of {related_mapper.class_.__qualname__}"
            )

        return int(self.session.execute(self._count_of(prop, kind, bound_value)).scalar_one())

    def set_counter(self, target: object, counter_field: str, value: int) -> None:
        related_mapper = self._mapper_of(target)
        counter_column = _counter_column(related_mapper, counter_field)
        table = counter_column.table
        stmt = (
            update(table)
            .where(*self._identity_criteria(related_mapper, table, target))
            .values({counter_column: value})
        )
        self.session.execute(stmt)

    def identity_of(self, target: object) -> tuple[object, ...]:
        identity = inspect(target).identity
        if identity is None:
            raise ValueError(f"{type(target).__qualname__} instance has no persistent identity")
        return tuple(identity)

    def _mapper_of(self, target: object) -> Mapper[object]:
        mapper = mapper_for(type(target))
        if mapper is None:
            raise ConfigurationError(f"{type(target).__qualname__} is not a mapped class")
        return mapper

    def _identity_criteria(
        self, mapper: Mapper[object], table: Table, target: object
    ) -> list[ColumnElement[bool]]:
        criteria: list[ColumnElement[bool]] = []
        for pk_column, value in zip(mapper.primary_key, self.identity_of(target), strict=True):
            column = table.corresponding_column(pk_column)
            if column is None:
                raise ConfigurationError(
                    f"Counter table {table.name} does not carry primary key {pk_column}"
                )
            criteria.append(column == value)
        return criteria

    @staticmethod
    def _count_of(
        prop: RelationshipProperty[object],
        kind: RelationKind,
        related_value: _RelatedValue,
    ) -> Select[tuple[int]]:
        local = prop.parent.local_table.alias("referencing")

        if kind is RelationKind.TO_ONE:
            from_clause: FromClause = local
            criteria = [
                _corresponding(local, local_column) == related_value(remote_column)
                for local_column, remote_column in prop.local_remote_pairs
            ]
        else:
            if prop.secondary is None:
                raise ConfigurationError(f"{prop} has no association table")
            association = prop.secondary.alias("association")
            from_clause = local.join(
                association,
                and_(
                    *(
                        _corresponding(local, parent_column)
                        == _corresponding(association, association_column)
                        for parent_column, association_column in prop.synchronize_pairs
                    )
                ),
            )
            criteria = [
                _corresponding(association, association_column) == related_value(related_column)
                for related_column, association_column in prop.secondary_synchronize_pairs
            ]

        return select(func.count()).select_from(from_clause).where(*criteria)


def _corresponding(selectable: FromClause, column: Column[object]) -> ColumnElement[object]:
    found = selectable.corresponding_column(column)
    if found is None:
        raise ConfigurationError(f"{column} is not part of {selectable}")
    return found


def _checked_relationship(
    source_type: type, relation_name: str, kind: RelationKind
) -> RelationshipProperty[object]:
    prop = relationship_for(source_type, relation_name)
    expected = (
        RelationshipDirection.MANYTOONE
        if kind is RelationKind.TO_ONE
        else RelationshipDirection.MANYTOMANY
    )
    if prop.direction is not expected:
        raise ConfigurationError(
            f"{source_type.__qualname__}.{relation_name} is {prop.direction.name}, "
            f"expected {expected.name}"
        )
    return prop


def _counter_column(mapper: Mapper[object], counter_field: str) -> Column[object]:
    qualname = mapper.class_.__qualname__
    if not mapper.has_property(counter_field):
        raise ConfigurationError(f"Counter field {qualname}.{counter_field} is not mapped")
    prop = mapper.get_property(counter_field)
    if not isinstance(prop, ColumnProperty) or len(prop.columns) != 1:
        raise ConfigurationError(f"Counter field {qualname}.{counter_field} is not a column")
    column = prop.columns[0]
    if not isinstance(column, Column):
        raise ConfigurationError(f"Counter field {qualname}.{counter_field} is not a table column")
    return column


if TYPE_CHECKING:
    from typing import cast

    from relcount.domain.ports.persistence import CounterStore

    _store_check: CounterStore = SqlAlchemyCounterStore(cast("Session", object()))
