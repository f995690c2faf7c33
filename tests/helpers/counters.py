"""Fakes for exercising the counter engine without a database."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from relcount.domain.counters import (
    CountableRegistry,
    CountableRelation,
    RelationKind,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(eq=False)
class Author:
    name: str
    post_count: int = 0


@dataclass(eq=False)
class Label:
    name: str
    post_count: int = 0


@dataclass(eq=False)
class Post:
    title: str
    author: Author | None = None
    labels: list[Label] = field(default_factory=list)
    comments: list[object] = field(default_factory=list)


@dataclass(eq=False)
class Untracked:
    author: Author | None = None


@dataclass
class StaticMetadata:
    """Metadata service backed by a literal table."""

    kinds: dict[type, dict[str, RelationKind]] = field(default_factory=dict)
    calls: int = 0

    def relation_kinds(self, entity_type: type) -> Mapping[str, RelationKind]:
        self.calls += 1
        return self.kinds.get(entity_type, {})


def post_metadata() -> StaticMetadata:
    return StaticMetadata(
        kinds={
            Post: {
                "author": RelationKind.TO_ONE,
                "labels": RelationKind.TO_MANY,
                "comments": RelationKind.OTHER,
            },
            Untracked: {"author": RelationKind.TO_ONE},
        }
    )


def post_registry() -> CountableRegistry:
    registry = CountableRegistry()
    registry.register(
        Post,
        CountableRelation("author", "post_count"),
        CountableRelation("labels", "post_count"),
    )
    return registry


@dataclass
class RecordingStore:
    """Counter store that records calls and keeps counts in memory."""

    recounts: list[tuple[type, str, RelationKind, object, str]] = field(default_factory=list)
    counters: dict[tuple[int, str], int] = field(default_factory=dict)
    fail_on: object | None = None

    def recount(
        self,
        source_type: type,
        relation_name: str,
        kind: RelationKind,
        target: object,
        counter_field: str,
    ) -> None:
        if target is self.fail_on:
            raise RuntimeError("lock timeout")
        self.recounts.append((source_type, relation_name, kind, target, counter_field))

    def count_referencing(
        self,
        source_type: type,
        relation_name: str,
        kind: RelationKind,
        target: object,
    ) -> int:
        _ = (source_type, relation_name, kind)
        return sum(1 for call in self.recounts if call[3] is target)

    def set_counter(self, target: object, counter_field: str, value: int) -> None:
        self.counters[(id(target), counter_field)] = value

    def identity_of(self, target: object) -> tuple[object, ...]:
        return (id(target),)
