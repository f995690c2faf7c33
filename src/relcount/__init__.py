"""Keep denormalized relation counters in sync with the rows that reference them."""

from __future__ import annotations

from importlib import metadata

from relcount.config import ConfigurationError, CounterConfig, MaterializePhase
from relcount.domain.counters import (
    CountableRegistry,
    CountableRelation,
    CounterHookRegistry,
    MaterializationError,
    countable_entity,
    countable_relation,
)

try:
    __version__ = metadata.version("relcount")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0+local"

__all__ = [
    "ConfigurationError",
    "CountableRegistry",
    "CountableRelation",
    "CounterConfig",
    "CounterHookRegistry",
    "MaterializationError",
    "MaterializePhase",
    "countable_entity",
    "countable_relation",
]
