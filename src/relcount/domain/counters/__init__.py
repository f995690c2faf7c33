"""Counter tracking engine: resolve, capture, queue and materialize recounts."""

from __future__ import annotations

from .capture import ChangeCapture, symmetric_difference
from .errors import MaterializationError
from .hooks import CountableRelationRepository, CounterHook, CounterHookRegistry
from .markers import CountableRelation, countable_entity, countable_relation
from .materializer import CounterMaterializer
from .queue import UpdateQueue
from .registry import CountableRegistry
from .resolver import RelationResolver
from .types import FieldChange, RecountTask, RelationKind

__all__ = [
    "ChangeCapture",
    "CountableRegistry",
    "CountableRelation",
    "CountableRelationRepository",
    "CounterHook",
    "CounterHookRegistry",
    "CounterMaterializer",
    "FieldChange",
    "MaterializationError",
    "RecountTask",
    "RelationKind",
    "RelationResolver",
    "UpdateQueue",
    "countable_entity",
    "countable_relation",
    "symmetric_difference",
]
