"""Ports consumed by the counter tracking domain."""

from __future__ import annotations

from .metadata import MetadataService
from .persistence import CounterStore
from .unit_of_work import UnitOfWork

__all__ = ["CounterStore", "MetadataService", "UnitOfWork"]
