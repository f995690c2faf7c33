"""Drain the update queue into counter writes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeAlias

from relcount.config.errors import ConfigurationError
from relcount.domain.counters.errors import MaterializationError

if TYPE_CHECKING:
    from relcount.domain.counters.hooks import CounterHookRegistry
    from relcount.domain.counters.queue import UpdateQueue
    from relcount.domain.counters.types import RecountTask
    from relcount.domain.ports.persistence import CounterStore

log = logging.getLogger(__name__)

_RecountKey: TypeAlias = "tuple[type, str, str, tuple[object, ...]]"


class CounterMaterializer:
    """Executes queued recounts once the host transaction's writes are durable.

    For every related entity a registered hook wins; otherwise the store performs
    the generic aggregate update. Generic updates are collapsed per
    ``(source type, relation, counter field, related identity)`` within one drain.
    The queue is cleared whether or not the drain succeeds.
    """

    def __init__(self, store: CounterStore, hooks: CounterHookRegistry) -> None:
        self.store = store
        self.hooks = hooks

    def materialize(self, queue: UpdateQueue) -> list[tuple[object, str]]:
        """Run every queued task; return ``(related entity, counter field)`` pairs touched."""

        touched: list[tuple[object, str]] = []
        done: set[_RecountKey] = set()
        try:
            for task in queue:
                for target in task.related_entities():
                    if self._apply(task, target, done):
                        touched.append((target, task.counter_field))
        finally:
            queue.clear()
        log.debug("Materialized %d counter update(s)", len(touched))
        return touched

    def _apply(self, task: RecountTask, target: object, done: set[_RecountKey]) -> bool:
        hook = self.hooks.get(type(target))
        try:
            if hook is not None:
                hook(self.store, task.source, task.relation_name, target, task.counter_field)
                return True

            key = (
                task.source_type,
                task.relation_name,
                task.counter_field,
                self.store.identity_of(target),
            )
            if key in done:
                return False
            self.store.recount(
                task.source_type,
                task.relation_name,
                task.kind,
                target,
                task.counter_field,
            )
            done.add(key)
        except (ConfigurationError, MaterializationError):
            raise
        except Exception as exc:
            log.warning(
                "Counter update %s.%s via %s.%s failed",
                type(target).__qualname__,
                task.counter_field,
                task.source_type.__qualname__,
                task.relation_name,
            )
            raise MaterializationError(
                f"Failed to update {type(target).__qualname__}.{task.counter_field} "
                f"for relation {task.source_type.__qualname__}.{task.relation_name}",
                task=task,
            ) from exc
        return True
