"""Ports for persisting items, run statistics and the downstream cache."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import TYPE_CHECKING, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from ckansync.domain.model import Item
    from ckansync.domain.sync.context import SyncStats

Query: TypeAlias = Mapping[str, object]
"""Field filters: a scalar value matches by equality, a collection by membership."""


@runtime_checkable
class DocumentStore(Protocol):
    """Collection of item documents keyed by ``_id`` and unique on ``ckan_id``.

    Reads raise ``StoreLookupError``; writes raise ``StoreWriteError``. Each
    write is acknowledged individually, so a failed write never affects
    records written before it.
    """

    def find(self, query: Query) -> list[Item]: ...

    def identifiers(self) -> set[str]: ...

    def insert(self, record: Item) -> None: ...

    def save(self, record: Item) -> None: ...

    def remove(self, query: Query) -> int: ...


@runtime_checkable
class ResultCache(Protocol):
    """Downstream cache of query results built from the item collection."""

    def clear(self) -> int: ...


@runtime_checkable
class StatsRepository(Protocol):
    def add(self, stats: SyncStats) -> None: ...


def is_membership(value: object) -> bool:
    """Return whether a query value should match by membership."""

    return isinstance(value, Collection) and not isinstance(value, (str, bytes, Mapping))


__all__ = ["DocumentStore", "Query", "ResultCache", "StatsRepository", "is_membership"]
