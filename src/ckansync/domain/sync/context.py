"""Per-run state shared by the sync orchestrator and the cleanup pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ckansync.domain.model import CatalogSnapshot


@dataclass(frozen=True, slots=True)
class SyncOptions:
    """Behavioural switches for one run."""

    group_by_package: bool = False
    cleanup_requires_changes: bool = False
    keep_on_empty_catalog: bool = False


@dataclass(slots=True)
class SyncStats:
    """Counters and error log produced by one run."""

    syncd: int = 0
    updated: int = 0
    inserted: int = 0
    removed: int = 0
    errors: int = 0
    enrichment_failures: int = 0
    err_log: list[str] = field(default_factory=list[str])
    timestamp: datetime | None = None

    @property
    def changed(self) -> bool:
        """Whether the run mutated the store in any way."""

        return self.inserted + self.updated + self.removed > 0

    def record_error(self, message: str) -> None:
        self.errors += 1
        self.err_log.append(message)

    def record_enrichment_failure(self, message: str) -> None:
        self.enrichment_failures += 1
        self.err_log.append(message)

    def finish(self, *, now: datetime | None = None) -> None:
        self.timestamp = now or datetime.now(UTC)

    def as_record(self) -> dict[str, Any]:
        return {
            "syncd": self.syncd,
            "updated": self.updated,
            "inserted": self.inserted,
            "removed": self.removed,
            "errors": self.errors,
            "enrichment_failures": self.enrichment_failures,
            "err_log": list(self.err_log),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass(slots=True)
class RunContext:
    """Everything a run mutates, constructed at run start and dropped at run end.

    ``vocabulary`` may be handed in pre-populated to warm the facet cache
    across runs.
    """

    snapshot: CatalogSnapshot
    options: SyncOptions = field(default_factory=SyncOptions)
    stats: SyncStats = field(default_factory=SyncStats)
    vocabulary: dict[str, str] = field(default_factory=dict[str, str])

    @property
    def fetched_ids(self) -> set[str]:
        return self.snapshot.identifiers(group_by_package=self.options.group_by_package)
