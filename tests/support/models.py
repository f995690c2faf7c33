"""Mapped sample entities used by adapter and end-to-end tests."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from functools import cache

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Uuid, orm
from sqlalchemy.orm import configure_mappers, relationship

from relcount.domain.counters import (
    CountableRegistry,
    CountableRelation,
    countable_entity,
    countable_relation,
)

UUIDColumnType = Uuid[uuid.UUID]


@dataclass(eq=False, kw_only=True)
class Customer:
    name: str
    order_count: int = 0
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    orders: list[Order] = field(default_factory=list)


@countable_entity
@dataclass(eq=False, kw_only=True)
class Order:
    reference: str
    status: str = "open"
    customer: Customer | None = field(default=None, metadata=countable_relation("order_count"))
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(eq=False, kw_only=True)
class Tag:
    label: str
    article_count: int = 0
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(eq=False, kw_only=True)
class Article:
    title: str
    tags: list[Tag] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@countable_entity(parent="child_count")
@dataclass(eq=False, kw_only=True)
class Category:
    name: str
    parent: Category | None = None
    child_count: int = 0
    id: uuid.UUID = field(default_factory=uuid.uuid4)


mapper_registry = orm.registry()

customer_table = Table(
    "customer",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("order_count", Integer, nullable=False, default=0),
)

order_table = Table(
    "customer_order",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("reference", String, nullable=False),
    Column("status", String, nullable=False, default="open"),
    Column("customer_id", UUIDColumnType, ForeignKey("customer.id"), nullable=True),
)

tag_table = Table(
    "tag",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("label", String, nullable=False),
    Column("article_count", Integer, nullable=False, default=0),
)

article_table = Table(
    "article",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("title", String, nullable=False),
)

article_tag_table = Table(
    "article_tag",
    mapper_registry.metadata,
    Column("article_id", UUIDColumnType, ForeignKey("article.id"), primary_key=True),
    Column("tag_id", UUIDColumnType, ForeignKey("tag.id"), primary_key=True),
)

category_table = Table(
    "category",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("parent_id", UUIDColumnType, ForeignKey("category.id"), nullable=True),
    Column("child_count", Integer, nullable=False, default=0),
)


@cache
def start_mappers() -> orm.registry:
    """Map the sample entities once per test process."""

    mapper_registry.map_imperatively(
        Customer,
        customer_table,
        properties={
            "orders": relationship(Order, back_populates="customer"),
        },
    )
    mapper_registry.map_imperatively(
        Order,
        order_table,
        properties={
            "customer": relationship(Customer, back_populates="orders"),
        },
    )
    mapper_registry.map_imperatively(Tag, tag_table)
    mapper_registry.map_imperatively(
        Article,
        article_table,
        properties={
            "tags": relationship(Tag, secondary=article_tag_table),
        },
    )
    mapper_registry.map_imperatively(
        Category,
        category_table,
        properties={
            "parent": relationship(Category, remote_side=[category_table.c.id]),
        },
    )
    configure_mappers()
    return mapper_registry


def build_registry() -> CountableRegistry:
    """Registry covering every tracked sample entity."""

    registry = CountableRegistry()
    registry.scan(Order, Category)
    registry.register(Article, CountableRelation("tags", "article_count"))
    return registry
