"""Application orchestration entry points."""

from __future__ import annotations

import json
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from ckansync.adapters.ckan import CkanClient
from ckansync.adapters.payload import HttpPayloadFetcher
from ckansync.adapters.plugins import load_parser_registry, load_post_processor
from ckansync.adapters.sqlalchemy.unit_of_work import SqlAlchemyStoreUnitOfWork, startup
from ckansync.domain.catalog_sync import sync_catalog
from ckansync.domain.ports.unit_of_work import StoreUnitOfWork
from ckansync.domain.sync import SyncOptions

if TYPE_CHECKING:
    from ckansync.config.loader import RunConfig
    from ckansync.domain.ports.catalog import CatalogSource
    from ckansync.domain.ports.fetching import PayloadFetcher
    from ckansync.domain.ports.plugins import ItemPostProcessor, ParserRegistry
    from ckansync.domain.sync import SyncStats

UnitOfWorkFactory = Callable[[], StoreUnitOfWork]


log = getLogger(__name__)


def run_catalog_sync(
    config: RunConfig,
    *,
    catalog: CatalogSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    fetch_payload: PayloadFetcher | None = None,
    parsers: ParserRegistry | None = None,
    post_processor: ItemPostProcessor | None = None,
    vocabulary_cache: dict[str, str] | None = None,
) -> SyncStats:
    """Synchronise the configured CKAN catalog into the configured store.

    Adapters left as ``None`` are built from ``config``; the SQLAlchemy store
    is only started when no unit-of-work factory is supplied.
    """

    if unit_of_work_factory is None:
        startup(
            database_uri=config.database.uri,
            collections=config.database.collections,
            force=True,
        )
        unit_of_work_factory = SqlAlchemyStoreUnitOfWork

    effective_catalog = catalog or CkanClient(config=config.ckan)
    effective_fetch = fetch_payload or HttpPayloadFetcher(resilience=config.payloads)
    effective_parsers = parsers if parsers is not None else load_parser_registry(
        config.sync.parsers_dir
    )
    effective_post_processor = post_processor or load_post_processor(config.sync.post_processor)

    log.info(
        "Starting CKAN sync: server=%s, group_by_package=%s, parsers=%s",
        config.ckan.server,
        config.sync.group_by_package,
        list(effective_parsers.formats),
    )

    stats = sync_catalog(
        catalog=effective_catalog,
        unit_of_work_factory=unit_of_work_factory,
        fetch_payload=effective_fetch,
        parsers=effective_parsers,
        post_processor=effective_post_processor,
        options=SyncOptions(
            group_by_package=config.sync.group_by_package,
            cleanup_requires_changes=config.sync.cleanup_requires_changes,
            keep_on_empty_catalog=config.sync.keep_on_empty_catalog,
        ),
        vocabulary_cache=vocabulary_cache,
    )

    log.info("Finished CKAN sync: %s", json.dumps(stats.as_record(), indent=2))
    for message in stats.err_log:
        log.error(message)

    return stats
