"""SQLAlchemy-backed unit of work with counter tracking installed."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from relcount.adapters.sqlalchemy.tracker import SqlAlchemyCounterTracker

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from relcount.config.counters import CounterConfig
    from relcount.domain.counters.hooks import CounterHookRegistry
    from relcount.domain.counters.registry import CountableRegistry


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None
    tracker: SqlAlchemyCounterTracker | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None or self.tracker is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call relcount.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
            self.tracker.install(self._session_factory)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    registry: CountableRegistry,
    *,
    hooks: CounterHookRegistry | None = None,
    config: CounterConfig | None = None,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> SqlAlchemyCounterTracker:
    """Initialise the engine and the counter tracker used by every unit of work.

    Mappers must be configured before calling this; tracked relations are
    validated here so configuration errors surface at startup.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )
    if engine is None:
        if database_uri is None:
            raise StartupError("startup() needs an engine or a database_uri")
        engine = create_engine(database_uri, future=True)
    shutdown()

    tracker = SqlAlchemyCounterTracker(registry, hooks=hooks, config=config)
    tracker.validate()

    _STATE.tracker = tracker
    _STATE.engine = engine
    return tracker


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def configured_tracker() -> SqlAlchemyCounterTracker | None:
    return _STATE.tracker


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.tracker is not None:
        _STATE.tracker.uninstall()
    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.tracker = None
    _STATE.engine = None


class SqlAlchemyUnitOfWork:
    """Unit of work whose commit materializes queued counter updates."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self.session = self.session_factory()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self.session.close()
            self.session = None
        return False

    def add(self, entity: object) -> None:
        self.session.add(entity)

    def delete(self, entity: object) -> None:
        self.session.delete(entity)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


if TYPE_CHECKING:
    from relcount.domain.ports.unit_of_work import UnitOfWork

    _uow_check: UnitOfWork = SqlAlchemyUnitOfWork()
