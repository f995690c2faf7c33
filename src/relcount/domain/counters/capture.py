"""Turn lifecycle observations into queued recount tasks."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from relcount.config.errors import ConfigurationError
from relcount.domain.counters.types import RecountTask, RelationKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from relcount.domain.counters.queue import UpdateQueue
    from relcount.domain.counters.resolver import RelationResolver
    from relcount.domain.counters.types import FieldChange

log = logging.getLogger(__name__)


def symmetric_difference(
    before: Iterable[object], after: Iterable[object]
) -> tuple[object, ...]:
    """Return members present on only one side, removed first, compared by identity."""

    before_items = list(before)
    after_items = list(after)
    before_ids = {id(item) for item in before_items}
    after_ids = {id(item) for item in after_items}

    changed: list[object] = []
    seen: set[int] = set()
    removed = (item for item in before_items if id(item) not in after_ids)
    added = (item for item in after_items if id(item) not in before_ids)
    for item in (*removed, *added):
        if id(item) in seen:
            continue
        seen.add(id(item))
        changed.append(item)
    return tuple(changed)


class ChangeCapture:
    """Builds recount tasks for tracked entities in each transaction phase."""

    def __init__(self, resolver: RelationResolver) -> None:
        self.resolver = resolver

    def capture_actual(self, entity: object, queue: UpdateQueue) -> int:
        """Queue the current value of every tracked field (entity created or removed)."""

        if not self.resolver.is_supported(entity):
            return 0
        pushed = 0
        for relation_name in self.resolver.resolve(entity):
            kind = self.resolver.kind_of(type(entity), relation_name)
            value = getattr(entity, relation_name)
            if kind is RelationKind.TO_MANY:
                target: object = tuple(value) if isinstance(value, Iterable) else ()
            else:
                target = value
            queue.push(self._build_task(entity, relation_name, kind, target))
            pushed += 1
        return pushed

    def capture_changed(
        self,
        entity: object,
        changes: Mapping[str, FieldChange],
        queue: UpdateQueue,
    ) -> int:
        """Queue recounts for tracked fields that appear in ``changes``."""

        if not self.resolver.is_supported(entity):
            return 0
        pushed = 0
        for relation_name in self.resolver.resolve(entity):
            change = changes.get(relation_name)
            if change is None:
                continue
            kind = self.resolver.kind_of(type(entity), relation_name)
            if kind is RelationKind.TO_MANY:
                changed = symmetric_difference(change.before, change.after)
                if not changed:
                    continue
                queue.push(self._build_task(entity, relation_name, kind, changed))
                pushed += 1
                continue

            new = change.after[0] if change.after else None
            old = change.before[0] if change.before else None
            if new is not None:
                queue.push(self._build_task(entity, relation_name, kind, new))
                pushed += 1
            if old is not None and old is not new:
                queue.push(self._build_task(entity, relation_name, kind, old))
                pushed += 1
        return pushed

    def _build_task(
        self,
        entity: object,
        relation_name: str,
        kind: RelationKind,
        target: object,
    ) -> RecountTask:
        marker = self.resolver.marker_for(type(entity), relation_name)
        if not marker.target_property:
            raise ConfigurationError(
                f"target_property not defined in countable relation for "
                f"{type(entity).__qualname__}.{relation_name}"
            )
        log.debug(
            "Queue recount of %s via %s.%s",
            marker.target_property,
            type(entity).__qualname__,
            relation_name,
        )
        return RecountTask(
            source=entity,
            relation_name=relation_name,
            counter_field=marker.target_property,
            kind=kind,
            target=target,
        )
