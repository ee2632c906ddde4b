"""Unit-of-work boundary around one store connection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from ckansync.domain.ports.persistence import DocumentStore, ResultCache, StatsRepository


@dataclass(slots=True)
class StoreRepositories:
    """Collections reachable through one store connection."""

    items: DocumentStore
    stats: StatsRepository | None = None
    cache: ResultCache | None = None


@runtime_checkable
class StoreUnitOfWork(Protocol):
    """Opens the store connection on enter and closes it exactly once on exit.

    Entering raises ``StoreConnectionError`` when the store is unreachable.
    """

    @property
    def repositories(self) -> StoreRepositories: ...

    def __enter__(self) -> StoreUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...


__all__ = ["StoreRepositories", "StoreUnitOfWork"]
