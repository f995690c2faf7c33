"""Wire SQLAlchemy session events to the counter tracking engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from relcount.adapters.sqlalchemy.metadata import (
    SqlAlchemyMetadataService,
    mapper_for,
    relationship_for,
)
from relcount.adapters.sqlalchemy.store import SqlAlchemyCounterStore
from relcount.config.counters import CounterConfig, MaterializePhase, get_counter_config
from relcount.domain.counters.capture import ChangeCapture
from relcount.domain.counters.hooks import CounterHookRegistry
from relcount.domain.counters.materializer import CounterMaterializer
from relcount.domain.counters.queue import UpdateQueue
from relcount.domain.counters.resolver import RelationResolver
from relcount.domain.counters.types import FieldChange, RelationKind

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.orm import InstanceState, Mapper, SessionTransaction, UOWTransaction

    from relcount.domain.counters.registry import CountableRegistry
    from relcount.domain.ports.metadata import MetadataService

log = logging.getLogger(__name__)

QUEUE_INFO_KEY: Final[str] = "relcount.update_queue"
COMMITTED_INFO_KEY: Final[str] = "relcount.committed"


def _retain_replaced_reference(
    target: object, value: object, oldvalue: object, initiator: object
) -> None:
    """No-op ``set`` listener; registering it with active history loads the old value."""

    _ = (target, value, oldvalue, initiator)


class SqlAlchemyCounterTracker:
    """Lifecycle adapter between SQLAlchemy sessions and the counter engine.

    ``before_flush`` captures new, deleted and modified tracked entities into a queue
    kept in ``Session.info``. Depending on the configured phase the queue is drained
    in ``after_flush_postexec`` (inside the host transaction) or once the committed
    outermost transaction has closed (on a fresh session bound like the host one).
    Ending the outermost transaction without a commit discards whatever is queued.
    """

    def __init__(
        self,
        registry: CountableRegistry,
        *,
        hooks: CounterHookRegistry | None = None,
        metadata: MetadataService | None = None,
        config: CounterConfig | None = None,
    ) -> None:
        self.registry = registry
        self.hooks = hooks if hooks is not None else CounterHookRegistry()
        self.config = config if config is not None else get_counter_config()
        self.resolver = RelationResolver(
            registry, metadata if metadata is not None else SqlAlchemyMetadataService()
        )
        self.capture = ChangeCapture(self.resolver)
        self._targets: list[Any] = []
        self._instrumented: set[tuple[type, str]] = set()

    @property
    def phase(self) -> MaterializePhase:
        return self.config.phase

    def install(self, target: Any = Session) -> None:
        """Listen on ``target``: a ``Session`` instance, a ``sessionmaker`` or the class."""

        self.validate()
        event.listen(target, "before_flush", self._before_flush)
        event.listen(target, "after_flush_postexec", self._after_flush_postexec)
        event.listen(target, "after_commit", self._after_commit)
        event.listen(target, "after_transaction_end", self._after_transaction_end)
        self._targets.append(target)
        log.info("Installed counter tracking (%s) on %r", self.phase.value, target)

    def uninstall(self) -> None:
        for target in self._targets:
            event.remove(target, "before_flush", self._before_flush)
            event.remove(target, "after_flush_postexec", self._after_flush_postexec)
            event.remove(target, "after_commit", self._after_commit)
            event.remove(target, "after_transaction_end", self._after_transaction_end)
        self._targets.clear()

    def validate(self) -> None:
        """Resolve every registered type, failing fast on configuration errors.

        Tracked to-one attributes are switched to active history so the replaced
        reference is available when the relationship is reassigned.
        """

        for entity_type in self.registry.entity_types():
            for relation_name in self.resolver.resolve_type(entity_type):
                if self.resolver.kind_of(entity_type, relation_name) is not RelationKind.TO_ONE:
                    continue
                if (entity_type, relation_name) in self._instrumented:
                    continue
                event.listen(
                    getattr(entity_type, relation_name),
                    "set",
                    _retain_replaced_reference,
                    active_history=True,
                )
                self._instrumented.add((entity_type, relation_name))

    def queue_for(self, session: Session) -> UpdateQueue:
        queue = session.info.get(QUEUE_INFO_KEY)
        if queue is None:
            queue = UpdateQueue()
            session.info[QUEUE_INFO_KEY] = queue
        return queue

    def materialize(self, session: Session, *, store_session: Session | None = None) -> None:
        """Drain the queue of ``session``, writing through ``store_session`` if given."""

        queue = self.queue_for(session)
        if not queue:
            return
        store = SqlAlchemyCounterStore(store_session if store_session is not None else session)
        touched = CounterMaterializer(store, self.hooks).materialize(queue)
        for target, counter_field in touched:
            if inspect(target).persistent:
                session.expire(target, [counter_field])

    # session events ---------------------------------------------------------

    def _before_flush(
        self, session: Session, flush_context: UOWTransaction, instances: Any
    ) -> None:
        _ = (flush_context, instances)
        queue = self.queue_for(session)
        with session.no_autoflush:
            for entity in list(session.new):
                self.capture.capture_actual(entity, queue)
            for entity in list(session.deleted):
                # a reference replaced before the delete still owns the committed row
                if self.capture.capture_actual(entity, queue):
                    self._capture_changes(session, entity, queue)
            for entity in list(session.dirty):
                if self.resolver.is_supported(entity):
                    self._capture_changes(session, entity, queue)
        log.debug("Captured %d pending recount task(s)", len(queue))

    def _after_flush_postexec(self, session: Session, flush_context: UOWTransaction) -> None:
        _ = flush_context
        if self.phase is MaterializePhase.AFTER_FLUSH:
            self.materialize(session)

    def _after_commit(self, session: Session) -> None:
        # connections are still checked out here, so the drain waits for after_transaction_end
        if self.phase is not MaterializePhase.AFTER_COMMIT or session.in_nested_transaction():
            return
        if self.queue_for(session):
            session.info[COMMITTED_INFO_KEY] = True

    def _after_transaction_end(self, session: Session, transaction: SessionTransaction) -> None:
        if transaction.parent is not None:
            return
        committed = session.info.pop(COMMITTED_INFO_KEY, False)
        queue = session.info.get(QUEUE_INFO_KEY)
        if not queue:
            return
        if not committed:
            log.warning("Discarding %d recount task(s) from an uncommitted transaction", len(queue))
            queue.clear()
            return
        with self._counter_session(session, queue) as counter_session, counter_session.begin():
            self.materialize(session, store_session=counter_session)

    def _counter_session(self, session: Session, queue: UpdateQueue) -> Session:
        """Open a session bound like ``session`` for every mapper the queue touches."""

        binds: dict[Mapper[Any], Engine | Connection] = {}
        for task in queue:
            mappers = [mapper_for(task.source_type)]
            mappers.extend(mapper_for(type(target)) for target in task.related_entities())
            for mapper in mappers:
                if mapper is not None and mapper not in binds:
                    binds[mapper] = session.get_bind(mapper=mapper)
        return Session(bind=session.bind, binds=binds)

    # change sets -------------------------------------------------------------

    def _capture_changes(self, session: Session, entity: object, queue: UpdateQueue) -> None:
        changes = self._changes_for(session, entity)
        if changes:
            self.capture.capture_changed(entity, changes, queue)

    def _changes_for(self, session: Session, entity: object) -> dict[str, FieldChange]:
        state = inspect(entity)
        changes: dict[str, FieldChange] = {}
        for relation_name in self.resolver.resolve(entity):
            history = state.attrs[relation_name].history
            if history.has_changes():
                changes[relation_name] = FieldChange(
                    before=(*history.unchanged, *history.deleted),
                    after=(*history.unchanged, *history.added),
                )
                continue
            if self.resolver.kind_of(type(entity), relation_name) is RelationKind.TO_ONE:
                change = self._foreign_key_change(session, state, relation_name)
                if change is not None:
                    changes[relation_name] = change
        return changes

    def _foreign_key_change(
        self, session: Session, state: InstanceState[Any], relation_name: str
    ) -> FieldChange | None:
        """Detect reassignment made through the raw foreign key column."""

        prop = relationship_for(state.class_, relation_name)
        if len(prop.local_columns) != 1:
            return None
        (fk_column,) = prop.local_columns
        column_property = state.mapper.get_property_by_column(fk_column)
        history = state.attrs[column_property.key].history
        if not history.has_changes():
            return None

        def load(key: object) -> object | None:
            return None if key is None else session.get(prop.mapper.class_, key)

        old = load(history.deleted[0]) if history.deleted else None
        new = load(history.added[0]) if history.added else None
        return FieldChange(
            before=() if old is None else (old,),
            after=() if new is None else (new,),
        )
