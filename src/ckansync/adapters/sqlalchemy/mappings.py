"""SQLAlchemy table metadata for the item, stats and result-cache collections.

Table names come from configuration, so tables are built per ``CollectionNames``
on a fresh ``MetaData`` instead of being declared at import time.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
    Uuid,
    func,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from ckansync.config.storage import CollectionNames

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class StoreTables:
    metadata: MetaData
    items: Table
    stats: Table | None = None
    cache: Table | None = None


def item_table(metadata: MetaData, name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
        Column("ckan_id", String(255), nullable=False, unique=True, index=True),
        Column("document", JSON, nullable=False),
        Column(
            "written_at",
            UTCDateTime(),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
        ),
    )


def stats_table(metadata: MetaData, name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("timestamp", UTCDateTime(), nullable=True),
        Column("syncd", Integer, nullable=False, default=0),
        Column("updated", Integer, nullable=False, default=0),
        Column("inserted", Integer, nullable=False, default=0),
        Column("removed", Integer, nullable=False, default=0),
        Column("errors", Integer, nullable=False, default=0),
        Column("enrichment_failures", Integer, nullable=False, default=0),
        Column("err_log", JSON, nullable=False),
    )


def cache_table(metadata: MetaData, name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("key", String(512), primary_key=True),
        Column("value", JSON, nullable=True),
        Column("created_at", UTCDateTime(), nullable=False, server_default=func.now()),
    )


def build_tables(collections: CollectionNames) -> StoreTables:
    names = [collections.main, collections.stats, collections.cache]
    configured = [name for name in names if name]
    if len(set(configured)) != len(configured):
        raise ValueError(f"Collection names must be distinct: {configured}")

    metadata = MetaData()
    return StoreTables(
        metadata=metadata,
        items=item_table(metadata, collections.main),
        stats=stats_table(metadata, collections.stats) if collections.stats else None,
        cache=cache_table(metadata, collections.cache) if collections.cache else None,
    )


def create_all_tables(engine: Engine, tables: StoreTables) -> None:
    log.debug("Creating tables %s", sorted(tables.metadata.tables))
    tables.metadata.create_all(engine, checkfirst=True)
