"""SQLAlchemy adapter package for relcount."""

from __future__ import annotations

from .metadata import SqlAlchemyMetadataService
from .store import SqlAlchemyCounterStore
from .tracker import SqlAlchemyCounterTracker
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyCounterStore",
    "SqlAlchemyCounterTracker",
    "SqlAlchemyMetadataService",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "shutdown",
    "startup",
]
