from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from relcount.adapters.sqlalchemy.tracker import SqlAlchemyCounterTracker
from relcount.config.counters import CounterConfig, MaterializePhase
from tests.support.models import build_registry, mapper_registry, start_mappers

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Connection, Engine

    from relcount.domain.counters import CountableRegistry, CounterHookRegistry
    from tests.support.sessions import TrackedSessionFactory


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # file-backed so after-commit recounts can open their own connection
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'relcount.db'}", future=True)

    # let SQLAlchemy emit BEGIN itself so SAVEPOINT works with pysqlite
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        _ = connection_record
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection: Connection) -> None:
        connection.exec_driver_sql("BEGIN")

    start_mappers()
    mapper_registry.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def countable_registry() -> CountableRegistry:
    start_mappers()
    return build_registry()


@pytest.fixture
def tracked_session(
    sqlite_engine: Engine,
    countable_registry: CountableRegistry,
) -> Iterator[TrackedSessionFactory]:
    installed: list[tuple[Session, SqlAlchemyCounterTracker]] = []

    def factory(
        *,
        phase: MaterializePhase = MaterializePhase.AFTER_COMMIT,
        hooks: CounterHookRegistry | None = None,
        expire_on_commit: bool = True,
    ) -> tuple[Session, SqlAlchemyCounterTracker]:
        tracker = SqlAlchemyCounterTracker(
            countable_registry,
            hooks=hooks,
            config=CounterConfig(phase=phase),
        )
        session = Session(bind=sqlite_engine, expire_on_commit=expire_on_commit)
        tracker.install(session)
        installed.append((session, tracker))
        return session, tracker

    try:
        yield factory
    finally:
        for session, tracker in installed:
            session.close()
            tracker.uninstall()
