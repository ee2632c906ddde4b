"""Application service running one full catalog synchronisation."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from ckansync.domain.errors import StoreError
from ckansync.domain.ports.plugins import ParserRegistry
from ckansync.domain.sync import (
    CleanupPass,
    ItemBuilder,
    ResourceEnricher,
    RunContext,
    SyncOptions,
    SyncOrchestrator,
    SyncStats,
    VocabularyResolver,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ckansync.domain.ports.catalog import CatalogSource
    from ckansync.domain.ports.fetching import PayloadFetcher
    from ckansync.domain.ports.plugins import ItemPostProcessor
    from ckansync.domain.ports.unit_of_work import StoreUnitOfWork

log = getLogger(__name__)


def sync_catalog(
    *,
    catalog: CatalogSource,
    unit_of_work_factory: Callable[[], StoreUnitOfWork],
    fetch_payload: PayloadFetcher,
    parsers: ParserRegistry | None = None,
    post_processor: ItemPostProcessor | None = None,
    options: SyncOptions | None = None,
    vocabulary_cache: dict[str, str] | None = None,
) -> SyncStats:
    """Export the catalog, reconcile it into the store and return the run stats.

    ``CatalogExportError`` and ``StoreConnectionError`` abort the run; every
    other failure is recorded on the returned stats.
    """

    log.info("Exporting data from CKAN...")
    snapshot = catalog.export()
    log.info("Data loaded. %s pkgs found.", len(snapshot))

    context = RunContext(
        snapshot=snapshot,
        options=options or SyncOptions(),
        vocabulary=vocabulary_cache if vocabulary_cache is not None else {},
    )

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        resolver = VocabularyResolver(catalog, cache=context.vocabulary)
        orchestrator = SyncOrchestrator(
            store=repositories.items,
            builder=ItemBuilder(resolver, post_processor=post_processor),
            enricher=ResourceEnricher(parsers or ParserRegistry(), fetch_payload),
        )

        log.info("Connected. Updating resources...")
        orchestrator.run(context)
        CleanupPass(store=repositories.items, cache=repositories.cache).run(context)

        context.stats.finish()
        if repositories.stats is not None:
            log.info("Saving stats...")
            try:
                repositories.stats.add(context.stats)
            except StoreError:
                log.exception("Failed to persist run statistics")

    return context.stats
