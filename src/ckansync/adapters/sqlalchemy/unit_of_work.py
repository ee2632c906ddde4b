"""SQLAlchemy-backed unit of work for the document store collections."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ckansync.adapters.sqlalchemy.mappings import StoreTables, build_tables, create_all_tables
from ckansync.adapters.sqlalchemy.repositories import (
    SqlAlchemyDocumentStore,
    SqlAlchemyResultCache,
    SqlAlchemyStatsRepository,
)
from ckansync.config.storage import CollectionNames, get_database_uri
from ckansync.domain.errors import StoreConnectionError
from ckansync.domain.ports.unit_of_work import StoreRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None
    tables: StoreTables | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None or self.tables is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call ckansync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    collections: CollectionNames | None = None,
    force: bool = False,
) -> None:
    """Initialise the engine and create the configured collection tables.

    Raises ``StoreConnectionError`` when the database cannot be reached.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    tables = build_tables(collections or CollectionNames())
    resolved_engine = engine or create_engine(database_uri or get_database_uri(), future=True)
    try:
        create_all_tables(resolved_engine, tables)
    except SQLAlchemyError as exc:
        raise StoreConnectionError(f"Unable to connect to {resolved_engine.url!r}: {exc}") from exc

    if _STATE.engine is not None and _STATE.engine is not resolved_engine:
        _STATE.engine.dispose()
    _STATE.engine = resolved_engine
    _STATE.tables = tables
    log.debug("SQLAlchemy store ready at %r", resolved_engine.url)


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.tables = None


class SqlAlchemyStoreUnitOfWork:
    """One session over the item, stats and cache tables."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self.tables: StoreTables = _STATE.tables  # type: ignore[assignment]
        self._session: Session | None = None
        self._repositories: StoreRepositories | None = None

    def __enter__(self) -> SqlAlchemyStoreUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        session = self.session_factory()
        try:
            session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            session.close()
            raise StoreConnectionError(f"Store connection failed: {exc}") from exc

        self._session = session
        self._repositories = StoreRepositories(
            items=SqlAlchemyDocumentStore(session, self.tables.items),
            stats=(
                SqlAlchemyStatsRepository(session, self.tables.stats)
                if self.tables.stats is not None
                else None
            ),
            cache=(
                SqlAlchemyResultCache(session, self.tables.cache)
                if self.tables.cache is not None
                else None
            ),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if self._session is not None:
            if exc_type is not None:
                self._session.rollback()
            self._session.close()
        self._session = None
        self._repositories = None
        return False

    @property
    def repositories(self) -> StoreRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session


if TYPE_CHECKING:
    from ckansync.domain.ports.unit_of_work import StoreUnitOfWork

    _uow_check: StoreUnitOfWork = SqlAlchemyStoreUnitOfWork()
