"""Orphan deletion and result-cache invalidation after the upsert pass."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from ckansync.domain.errors import StoreError
from ckansync.domain.model import CKAN_ID

if TYPE_CHECKING:
    from ckansync.domain.ports.persistence import DocumentStore, ResultCache

    from .context import RunContext

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CleanupResult:
    ran: bool
    orphans: frozenset[str] = frozenset()
    cache_cleared: bool = False


class CleanupPass:
    def __init__(self, *, store: DocumentStore, cache: ResultCache | None = None) -> None:
        self._store = store
        self._cache = cache

    def run(self, context: RunContext) -> CleanupResult:
        """Remove stored items missing from the snapshot, then invalidate the cache."""

        orphans: frozenset[str] = frozenset()
        ran = self._should_remove(context)
        if ran:
            orphans = self._remove_orphans(context)
        cleared = self._invalidate_cache(context)
        return CleanupResult(ran=ran, orphans=orphans, cache_cleared=cleared)

    @staticmethod
    def _should_remove(context: RunContext) -> bool:
        stats = context.stats
        if context.options.cleanup_requires_changes and not (stats.inserted or stats.updated):
            log.info("No inserts or updates; skipping orphan removal")
            return False
        if context.options.keep_on_empty_catalog and not context.fetched_ids:
            log.warning("Catalog export holds no items; skipping orphan removal")
            return False
        return True

    def _remove_orphans(self, context: RunContext) -> frozenset[str]:
        stats = context.stats
        try:
            stored = self._store.identifiers()
        except StoreError as exc:
            stats.record_error(f"Failed to list stored identifiers: {exc}")
            return frozenset()

        orphans = frozenset(stored - context.fetched_ids)
        if not orphans:
            log.info("No orphaned records found")
            return orphans

        log.info("Removing %s orphaned records", len(orphans))
        try:
            stats.removed += self._store.remove({CKAN_ID: sorted(orphans)})
        except StoreError as exc:
            stats.record_error(f"Failed to remove orphaned records: {exc}")
        return orphans

    def _invalidate_cache(self, context: RunContext) -> bool:
        if self._cache is None or not context.stats.changed:
            return False
        try:
            cleared = self._cache.clear()
        except StoreError as exc:
            context.stats.record_error(f"Failed to clear result cache: {exc}")
            return False
        log.info("Cleared %s cached results", cleared)
        return True
