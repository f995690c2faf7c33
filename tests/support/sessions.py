from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from relcount.adapters.sqlalchemy.tracker import SqlAlchemyCounterTracker

TrackedSessionFactory: TypeAlias = "Callable[..., tuple[Session, SqlAlchemyCounterTracker]]"
