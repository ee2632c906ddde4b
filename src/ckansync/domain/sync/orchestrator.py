"""Sequential upsert pass over a catalog snapshot.

Packages are consumed one at a time from an explicit queue in catalog order;
each package expands into its own queue of units (one per resource, or a
single unit in group mode). Every unit ends in exactly one of the states of
``UnitOutcome``. Per-unit failures are recorded on the run statistics and
never stop the pass.
"""

from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from ckansync.domain.errors import (
    EnrichmentError,
    PostProcessingError,
    StoreLookupError,
    StoreWriteError,
)
from ckansync.domain.model import CKAN_ID, RECORD_KEY

from .changes import differs
from .enrichment import EnrichedItem

if TYPE_CHECKING:
    from ckansync.domain.model import Item, Package, Resource
    from ckansync.domain.ports.persistence import DocumentStore

    from .context import RunContext
    from .enrichment import ResourceEnricher
    from .items import ItemBuilder

log = getLogger(__name__)


class UnitOutcome(StrEnum):
    SYNCED = "synced"
    INSERTED = "inserted"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class SyncUnit:
    """One pending item: a package resource, or a whole package in group mode."""

    package: Package
    resource: Resource | None = None

    @property
    def label(self) -> str:
        if self.resource is not None:
            return self.resource.name or self.resource.id
        return self.package.title or self.package.id


class SyncOrchestrator:
    def __init__(
        self,
        *,
        store: DocumentStore,
        builder: ItemBuilder,
        enricher: ResourceEnricher,
    ) -> None:
        self._store = store
        self._builder = builder
        self._enricher = enricher

    def run(self, context: RunContext) -> None:
        """Process every package of ``context.snapshot``, updating its stats."""

        pending: deque[Package] = deque(context.snapshot)
        total = len(pending)
        position = 0
        while pending:
            package = pending.popleft()
            position += 1
            log.info("Updating package (%s/%s): %s", position, total, package.title)
            self._sync_package(package, context)

    def _sync_package(self, package: Package, context: RunContext) -> None:
        units = deque(self._units_for(package, group_by_package=context.options.group_by_package))
        if not units:
            log.info("  package has no resources")
            return

        count = len(units)
        position = 0
        while units:
            unit = units.popleft()
            position += 1
            if unit.resource is not None:
                log.info("  checking resource (%s/%s): %s", position, count, unit.label)
            outcome = self.sync_unit(unit, context)
            log.debug("  %s -> %s", unit.label, outcome)

    @staticmethod
    def _units_for(package: Package, *, group_by_package: bool) -> list[SyncUnit]:
        if group_by_package:
            return [SyncUnit(package=package)]
        return [SyncUnit(package=package, resource=resource) for resource in package.resources]

    def sync_unit(self, unit: SyncUnit, context: RunContext) -> UnitOutcome:
        stats = context.stats

        try:
            candidate = self._builder.build(unit.package, unit.resource)
        except PostProcessingError as exc:
            stats.record_error(str(exc))
            log.info("  post-processing failed: %s", exc)
            return UnitOutcome.FAILED

        ckan_id = candidate[CKAN_ID]
        try:
            matches = self._store.find({CKAN_ID: ckan_id})
        except StoreLookupError as exc:
            stats.record_error(f"Failed to find ckan resource: {ckan_id}. {_describe(exc)}")
            log.info("  lookup failed for %s: %s", ckan_id, exc)
            return UnitOutcome.FAILED

        enriched = self._enrich(candidate, context)
        stored = matches[0] if matches else None

        if stored is None:
            log.info("  resource doesn't exist: inserting...")
            return self._write(enriched.item, context, insert=True)

        if not differs(enriched.item, stored, ignored=enriched.derived_fields):
            stats.syncd += 1
            log.info("  resource is in sync")
            return UnitOutcome.SYNCED

        log.info("  resource is stale: updating...")
        record = dict(enriched.item)
        record[RECORD_KEY] = stored[RECORD_KEY]
        return self._write(record, context, insert=False)

    def _enrich(self, candidate: Item, context: RunContext) -> EnrichedItem:
        try:
            return self._enricher.enrich(candidate)
        except EnrichmentError as exc:
            context.stats.record_enrichment_failure(
                f"Failed to enrich ckan resource: {candidate[CKAN_ID]}. {exc}"
            )
            log.info("  enrichment failed, continuing without payload: %s", exc)
            return EnrichedItem(item=candidate)

    def _write(self, record: Item, context: RunContext, *, insert: bool) -> UnitOutcome:
        stats = context.stats
        try:
            if insert:
                self._store.insert(record)
            else:
                self._store.save(record)
        except StoreWriteError as exc:
            action = "create" if insert else "update"
            stats.record_error(
                f"Failed to {action} ckan resource: {record[CKAN_ID]}. {_describe(exc)}"
            )
            log.info("  write failed for %s: %s", record[CKAN_ID], exc)
            return UnitOutcome.FAILED

        if insert:
            stats.inserted += 1
            return UnitOutcome.INSERTED
        stats.updated += 1
        return UnitOutcome.UPDATED


def _describe(exc: BaseException) -> str:
    """Serialise an error and its cause for the persisted error log."""

    payload: dict[str, str] = {"type": type(exc).__name__, "message": str(exc)}
    cause = exc.__cause__
    if cause is not None:
        payload["cause"] = f"{type(cause).__name__}: {cause}"
    return json.dumps(payload)
