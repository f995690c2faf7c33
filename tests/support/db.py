"""Read committed values straight from the database, bypassing any session."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

if TYPE_CHECKING:
    import uuid

    from sqlalchemy import Column
    from sqlalchemy.engine import Engine


def read_value(engine: Engine, column: Column[int], row_id: uuid.UUID) -> int:
    table = column.table
    with engine.connect() as connection:
        stmt = select(column).where(table.c.id == row_id)
        return connection.execute(stmt).scalar_one()
