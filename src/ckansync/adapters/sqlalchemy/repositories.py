"""Document store, stats and result-cache repositories backed by SQLAlchemy sessions."""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar, cast

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from ckansync.domain.errors import StoreLookupError, StoreWriteError
from ckansync.domain.model import CKAN_ID, RECORD_KEY, Item
from ckansync.domain.ports.persistence import is_membership

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Table
    from sqlalchemy.orm import Session

    from ckansync.domain.ports.persistence import Query
    from ckansync.domain.sync.context import SyncStats


T = TypeVar("T")


class _SessionRepository:
    """Writes are committed one by one, the way a document store acknowledges them."""

    def __init__(self, session: Session, table: Table) -> None:
        self.session = session
        self.table = table

    def _commit(self, action: str, operation: Callable[[], T]) -> T:
        try:
            result = operation()
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreWriteError(f"{action} on {self.table.name} failed: {exc}") from exc
        return result


class SqlAlchemyDocumentStore(_SessionRepository):
    """Item documents stored as JSON next to their ``ckan_id`` and record key."""

    # SQLite caps bound parameters per statement
    remove_batch_size = 500

    def find(self, query: Query) -> list[Item]:
        conditions, remaining = self._split_query(query)
        stmt = select(self.table.c.id, self.table.c.document).where(*conditions)
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreLookupError(f"Query on {self.table.name} failed: {exc}") from exc

        records = [_to_record(record_id, document) for record_id, document in rows]
        return [record for record in records if _matches(record, remaining)]

    def identifiers(self) -> set[str]:
        try:
            return set(self.session.execute(select(self.table.c.ckan_id)).scalars())
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreLookupError(f"Listing {self.table.name} failed: {exc}") from exc

    def insert(self, record: Item) -> None:
        record_id = _record_id(record) or uuid.uuid4()
        document = _document(record)
        stmt = insert(self.table).values(
            id=record_id, ckan_id=document[CKAN_ID], document=document
        )
        self._commit("insert", lambda: self.session.execute(stmt))

    def save(self, record: Item) -> None:
        """Replace the document with the record's ``_id``, inserting it if absent."""

        record_id = _record_id(record)
        if record_id is None:
            self.insert(record)
            return
        document = _document(record)

        def upsert() -> None:
            result = self.session.execute(
                update(self.table)
                .where(self.table.c.id == record_id)
                .values(ckan_id=document[CKAN_ID], document=document)
            )
            if _rowcount(result) == 0:
                self.session.execute(
                    insert(self.table).values(
                        id=record_id, ckan_id=document[CKAN_ID], document=document
                    )
                )

        self._commit("save", upsert)

    def remove(self, query: Query) -> int:
        """Delete matching documents; long membership lists go out in batches."""

        conditions, remaining = self._split_query(query)
        if remaining:
            ids = [uuid.UUID(record[RECORD_KEY]) for record in self.find(query)]
            if not ids:
                return 0
            return self._remove_members(self.table.c.id, ids)
        members = query.get(CKAN_ID)
        if len(query) == 1 and is_membership(members):
            return self._remove_members(self.table.c.ckan_id, list(cast("Any", members)))
        stmt = delete(self.table).where(*conditions)
        return self._commit("remove", lambda: _rowcount(self.session.execute(stmt)))

    def _remove_members(self, column: ColumnElement[Any], values: list[Any]) -> int:
        size = self.remove_batch_size

        def remove_batches() -> int:
            removed = 0
            for start in range(0, len(values), size):
                batch = values[start : start + size]
                removed += _rowcount(
                    self.session.execute(delete(self.table).where(column.in_(batch)))
                )
            return removed

        return self._commit("remove", remove_batches)

    def _split_query(self, query: Query) -> tuple[list[ColumnElement[bool]], dict[str, object]]:
        conditions: list[ColumnElement[bool]] = []
        remaining: dict[str, object] = {}
        for key, value in query.items():
            if key == CKAN_ID:
                column = self.table.c.ckan_id
                values = value
            elif key == RECORD_KEY:
                column = self.table.c.id
                values = _uuids(value)
            else:
                remaining[key] = value
                continue
            if is_membership(values):
                conditions.append(column.in_(list(cast("Any", values))))
            else:
                conditions.append(column == values)
        return conditions, remaining


class SqlAlchemyStatsRepository(_SessionRepository):
    def add(self, stats: SyncStats) -> None:
        stmt = insert(self.table).values(
            timestamp=stats.timestamp,
            syncd=stats.syncd,
            updated=stats.updated,
            inserted=stats.inserted,
            removed=stats.removed,
            errors=stats.errors,
            enrichment_failures=stats.enrichment_failures,
            err_log=list(stats.err_log),
        )
        self._commit("insert", lambda: self.session.execute(stmt))


class SqlAlchemyResultCache(_SessionRepository):
    def clear(self) -> int:
        stmt = delete(self.table)
        return self._commit("clear", lambda: _rowcount(self.session.execute(stmt)))


def _rowcount(result: object) -> int:
    return int(getattr(result, "rowcount", 0) or 0)


def _record_id(record: Item) -> uuid.UUID | None:
    value = record.get(RECORD_KEY)
    if value is None:
        return None
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except ValueError as exc:
        raise StoreWriteError(f"Invalid record key {value!r}") from exc


def _uuids(value: object) -> object:
    try:
        if is_membership(value):
            return [uuid.UUID(str(entry)) for entry in cast("list[object]", value)]
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise StoreLookupError(f"Invalid record key in query: {value!r}") from exc


def _document(record: Item) -> dict[str, Any]:
    """Copy ``record`` without its key into plain JSON types."""

    body = {key: value for key, value in record.items() if key != RECORD_KEY}
    if not isinstance(body.get(CKAN_ID), str) or not body[CKAN_ID]:
        raise StoreWriteError(f"Record has no {CKAN_ID}")
    try:
        return json.loads(json.dumps(body, default=str))
    except (TypeError, ValueError) as exc:
        raise StoreWriteError(f"Record {body[CKAN_ID]} is not serialisable: {exc}") from exc


def _to_record(record_id: uuid.UUID, document: Mapping[str, Any]) -> Item:
    record: Item = dict(document)
    record[RECORD_KEY] = str(record_id)
    return record


def _matches(record: Item, filters: Mapping[str, object]) -> bool:
    for key, expected in filters.items():
        actual = record.get(key)
        if is_membership(expected):
            if actual not in cast("list[object]", expected):
                return False
        elif actual != expected:
            return False
    return True


if TYPE_CHECKING:
    from ckansync.domain.ports.persistence import DocumentStore, ResultCache, StatsRepository

    _session_stub = cast("Session", object())
    _table_stub = cast("Table", object())
    _store_check: DocumentStore = SqlAlchemyDocumentStore(_session_stub, _table_stub)
    _stats_check: StatsRepository = SqlAlchemyStatsRepository(_session_stub, _table_stub)
    _cache_check: ResultCache = SqlAlchemyResultCache(_session_stub, _table_stub)
