from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from ckansync.adapters.sqlalchemy.mappings import StoreTables, build_tables, create_all_tables
from ckansync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyStoreUnitOfWork,
    shutdown,
    startup,
)
from ckansync.config.storage import CollectionNames

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


TEST_COLLECTIONS = CollectionNames(main="items", stats="sync_stats", cache="result_cache")


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store_tables(sqlite_engine: Engine) -> StoreTables:
    tables = build_tables(TEST_COLLECTIONS)
    create_all_tables(sqlite_engine, tables)
    return tables


@pytest.fixture
def sqlite_session(sqlite_engine: Engine, store_tables: StoreTables) -> Iterator[Session]:
    _ = store_tables
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyStoreUnitOfWork]]:
    startup(engine=sqlite_engine, collections=TEST_COLLECTIONS, force=True)

    def factory() -> SqlAlchemyStoreUnitOfWork:
        return SqlAlchemyStoreUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
