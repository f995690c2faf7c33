"""Declarative markers for entities and relationships that maintain counters.

Markers only describe intent. They are collected into a
:class:`~relcount.domain.counters.registry.CountableRegistry` once at startup, so no
reflection happens while a session is flushing.

Two styles are supported::

    @countable_entity
    @dataclass(eq=False, kw_only=True)
    class Order:
        customer: Customer | None = field(
            default=None, metadata=countable_relation("order_count")
        )

    @countable_entity(customer="order_count")
    class LegacyOrder: ...
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, TypeVar, overload

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

COUNTABLE_RELATION_KEY: Final[str] = "relcount.countable_relation"
COUNTABLE_RELATIONS_ATTR: Final[str] = "__countable_relations__"

T = TypeVar("T", bound=type)


@dataclass(frozen=True, slots=True)
class CountableRelation:
    """Marks ``field_name`` as a relation whose target keeps a count in ``target_property``."""

    field_name: str
    target_property: str | None = None


def countable_relation(target_property: str | None = None) -> Mapping[str, object]:
    """Return dataclass field metadata marking the field as counter-tracked."""

    return {COUNTABLE_RELATION_KEY: target_property}


@overload
def countable_entity(cls: T, /) -> T: ...


@overload
def countable_entity(cls: None = None, /, **relations: str) -> Callable[[T], T]: ...


def countable_entity(
    cls: T | None = None, /, **relations: str
) -> T | Callable[[T], T]:
    """Opt a class into counter tracking.

    Relations are taken from dataclass field metadata (see :func:`countable_relation`)
    and from keyword arguments mapping field names to counter properties.
    """

    def decorate(target_cls: T) -> T:
        collected: dict[str, CountableRelation] = {}
        if dataclasses.is_dataclass(target_cls):
            for dc_field in dataclasses.fields(target_cls):
                if COUNTABLE_RELATION_KEY in dc_field.metadata:
                    target_property = dc_field.metadata[COUNTABLE_RELATION_KEY]
                    collected[dc_field.name] = CountableRelation(
                        dc_field.name,
                        target_property if isinstance(target_property, str) else None,
                    )
        for field_name, target_property in relations.items():
            collected[field_name] = CountableRelation(field_name, target_property)
        setattr(target_cls, COUNTABLE_RELATIONS_ATTR, tuple(collected.values()))
        return target_cls

    if cls is None:
        return decorate
    return decorate(cls)


def declared_relations(cls: type) -> tuple[CountableRelation, ...]:
    """Return relations declared on ``cls`` itself via :func:`countable_entity`."""

    declared = cls.__dict__.get(COUNTABLE_RELATIONS_ATTR, ())
    return tuple(declared)
