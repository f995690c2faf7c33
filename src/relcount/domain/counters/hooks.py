"""Registry of custom counter hooks keyed by related entity type."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable

    from relcount.domain.ports.persistence import CounterStore

log = logging.getLogger(__name__)


class CounterHook(Protocol):
    """Replaces the generic recount for one related entity type."""

    def __call__(
        self,
        store: CounterStore,
        source: object,
        relation_name: str,
        target: object,
        counter_field: str,
    ) -> None: ...


@runtime_checkable
class CountableRelationRepository(Protocol):
    """Repository exposing bespoke counter logic for the entities it manages."""

    def update_countable_relation(
        self,
        store: CounterStore,
        source: object,
        relation_name: str,
        target: object,
        counter_field: str,
    ) -> None: ...


class CounterHookRegistry:
    """Optional per-type hooks consulted before the generic aggregate update.

    Example:
        hooks = CounterHookRegistry()

        @hooks.hook(Customer)
        def count_active_orders(store, source, relation_name, target, counter_field):
            ...
    """

    def __init__(self) -> None:
        self._hooks: dict[type, CounterHook] = {}

    def register(self, entity_type: type, hook: CounterHook) -> None:
        self._hooks[entity_type] = hook
        log.debug("Registered counter hook for %s", entity_type.__qualname__)

    def register_repository(self, entity_type: type, repository: object) -> bool:
        """Adopt ``repository.update_countable_relation`` as the hook, if it has one."""

        if not isinstance(repository, CountableRelationRepository):
            return False
        self.register(entity_type, repository.update_countable_relation)
        return True

    def hook(self, entity_type: type) -> Callable[[CounterHook], CounterHook]:
        """Decorator form of :meth:`register`."""

        def decorator(fn: CounterHook) -> CounterHook:
            self.register(entity_type, fn)
            return fn

        return decorator

    def get(self, entity_type: type) -> CounterHook | None:
        for cls in entity_type.__mro__:
            found = self._hooks.get(cls)
            if found is not None:
                return found
        return None

    def unregister(self, entity_type: type) -> None:
        self._hooks.pop(entity_type, None)

    def clear(self) -> None:
        self._hooks.clear()
