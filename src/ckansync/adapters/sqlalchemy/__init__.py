"""SQLAlchemy adapter package for the local document store."""

from __future__ import annotations

from .mappings import StoreTables, build_tables, create_all_tables
from .repositories import (
    SqlAlchemyDocumentStore,
    SqlAlchemyResultCache,
    SqlAlchemyStatsRepository,
)
from .unit_of_work import SqlAlchemyStoreUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyDocumentStore",
    "SqlAlchemyResultCache",
    "SqlAlchemyStatsRepository",
    "SqlAlchemyStoreUnitOfWork",
    "StartupError",
    "StoreTables",
    "build_tables",
    "create_all_tables",
    "shutdown",
    "startup",
]
