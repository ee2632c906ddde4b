from __future__ import annotations

import json

from ckansync.domain.model import Item
from ckansync.domain.ports.plugins import ItemPostProcessor, ParserRegistry
from ckansync.domain.sync import (
    ItemBuilder,
    ResourceEnricher,
    RunContext,
    SyncOptions,
    SyncOrchestrator,
    SyncUnit,
    UnitOutcome,
    VocabularyResolver,
)
from ckansync.domain.sync.items import resource_item
from tests.helpers.catalog import (
    CsvShapeParser,
    FakeCatalogSource,
    FakeDocumentStore,
    RecordingFetcher,
    make_package,
    make_resource,
    make_snapshot,
    make_tag,
)

CSV_URL = "https://example.org/data.csv"


def _orchestrator(
    store: FakeDocumentStore,
    *,
    fetcher: RecordingFetcher | None = None,
    parsers: ParserRegistry | None = None,
    post_processor: ItemPostProcessor | None = None,
) -> SyncOrchestrator:
    return SyncOrchestrator(
        store=store,
        builder=ItemBuilder(VocabularyResolver(FakeCatalogSource()), post_processor=post_processor),
        enricher=ResourceEnricher(parsers or ParserRegistry(), fetcher or RecordingFetcher()),
    )


def test_new_resources_are_inserted() -> None:
    package = make_package(resources=[make_resource("res-1"), make_resource("res-2")])
    store = FakeDocumentStore()
    context = RunContext(snapshot=make_snapshot(package))

    _orchestrator(store).run(context)

    assert sorted(store.records) == ["res-1", "res-2"]
    assert [action for action, _ in store.writes] == ["insert", "insert"]
    assert context.stats.inserted == 2
    assert context.stats.updated == context.stats.syncd == context.stats.errors == 0


def test_unchanged_resource_is_counted_as_synced() -> None:
    resource = make_resource("res-1")
    package = make_package(resources=[resource])
    store = FakeDocumentStore([resource_item(package, resource)])
    context = RunContext(snapshot=make_snapshot(package))

    _orchestrator(store).run(context)

    assert store.writes == []
    assert context.stats.syncd == 1


def test_changed_resource_is_saved_with_stored_key() -> None:
    resource = make_resource("res-1", updated="2024-05-01T00:00:00")
    package = make_package(resources=[resource])
    stale = resource_item(package, resource)
    stale["updated"] = "2024-01-02T00:00:00"
    store = FakeDocumentStore([stale])
    stored_key = store.records["res-1"]["_id"]
    context = RunContext(snapshot=make_snapshot(package))

    _orchestrator(store).run(context)

    action, record = store.writes[0]
    assert action == "save"
    assert record["_id"] == stored_key
    assert record["updated"] == "2024-05-01T00:00:00"
    assert context.stats.updated == 1


def test_only_data_difference_does_not_write() -> None:
    resource = make_resource("res-1", url=CSV_URL)
    package = make_package(resources=[resource])
    stored = resource_item(package, resource)
    stored["data"] = [["old"]]
    stored["cols"] = 7
    store = FakeDocumentStore([stored])
    parsers = ParserRegistry({"csv": CsvShapeParser()})
    fetcher = RecordingFetcher({CSV_URL: "a,b\n1,2"})
    context = RunContext(snapshot=make_snapshot(package))

    _orchestrator(store, fetcher=fetcher, parsers=parsers).run(context)

    assert store.writes == []
    assert context.stats.syncd == 1
    assert fetcher.calls == [CSV_URL]


def test_enriched_insert_carries_payload() -> None:
    package = make_package(resources=[make_resource("res-1", url=CSV_URL)])
    store = FakeDocumentStore()
    parsers = ParserRegistry({"csv": CsvShapeParser()})
    fetcher = RecordingFetcher({CSV_URL: "a,b\n1,2"})

    _orchestrator(store, fetcher=fetcher, parsers=parsers).run(
        RunContext(snapshot=make_snapshot(package))
    )

    assert store.records["res-1"]["cols"] == 2
    assert store.records["res-1"]["data"] == [["a", "b"], ["1", "2"]]


def test_enrichment_failure_still_inserts_item() -> None:
    package = make_package(resources=[make_resource("res-1", url=CSV_URL)])
    store = FakeDocumentStore()
    parsers = ParserRegistry({"csv": CsvShapeParser()})
    context = RunContext(snapshot=make_snapshot(package))

    _orchestrator(store, fetcher=RecordingFetcher(), parsers=parsers).run(context)

    assert "data" not in store.records["res-1"]
    assert context.stats.inserted == 1
    assert context.stats.enrichment_failures == 1
    assert context.stats.errors == 0
    assert "res-1" in context.stats.err_log[0]


def test_package_without_resources_completes_immediately() -> None:
    empty = make_package("pkg-empty")
    full = make_package("pkg-full", resources=[make_resource("res-1")])
    store = FakeDocumentStore()
    context = RunContext(snapshot=make_snapshot(empty, full))

    _orchestrator(store).run(context)

    assert list(store.records) == ["res-1"]
    assert context.stats.inserted == 1


def test_lookup_failure_skips_item_and_continues() -> None:
    package = make_package(resources=[make_resource("res-1"), make_resource("res-2")])
    store = FakeDocumentStore()
    store.fail_find.add("res-1")
    context = RunContext(snapshot=make_snapshot(package))

    _orchestrator(store).run(context)

    assert list(store.records) == ["res-2"]
    assert context.stats.errors == 1
    assert context.stats.err_log[0].startswith("Failed to find ckan resource: res-1.")


def test_write_failure_records_identifier_and_cause() -> None:
    package = make_package(resources=[make_resource("res-1"), make_resource("res-2")])
    store = FakeDocumentStore()
    store.fail_write.add("res-1")
    context = RunContext(snapshot=make_snapshot(package))

    _orchestrator(store).run(context)

    assert list(store.records) == ["res-2"]
    assert context.stats.errors == 1
    message = context.stats.err_log[0]
    prefix = "Failed to create ckan resource: res-1. "
    assert message.startswith(prefix)
    details = json.loads(message.removeprefix(prefix))
    assert details["type"] == "StoreWriteError"
    assert "E11000" in details["cause"]


def test_group_mode_writes_one_item_per_package() -> None:
    first = make_package("pkg-1", resources=[make_resource("res-1"), make_resource("res-2")])
    second = make_package("pkg-2", tags=[make_tag("air")])
    store = FakeDocumentStore()
    context = RunContext(
        snapshot=make_snapshot(first, second),
        options=SyncOptions(group_by_package=True),
    )

    _orchestrator(store).run(context)

    assert sorted(store.records) == ["pkg-1", "pkg-2"]
    assert len(store.records["pkg-1"]["resources"]) == 2
    assert store.records["pkg-2"]["resources"] == []
    assert context.stats.inserted == 2


def test_sync_unit_reports_outcome() -> None:
    resource = make_resource("res-1")
    package = make_package(resources=[resource])
    store = FakeDocumentStore()
    orchestrator = _orchestrator(store)
    context = RunContext(snapshot=make_snapshot(package))
    unit = SyncUnit(package=package, resource=resource)

    assert orchestrator.sync_unit(unit, context) is UnitOutcome.INSERTED
    assert orchestrator.sync_unit(unit, context) is UnitOutcome.SYNCED
    assert unit.label == "Resource res-1"


class _DropsSecondId:
    def process(self, item: Item) -> None:
        if item["ckan_id"] == "res-2":
            del item["ckan_id"]


def test_post_processor_dropping_ckan_id_fails_only_that_item() -> None:
    package = make_package(
        resources=[make_resource("res-1"), make_resource("res-2"), make_resource("res-3")]
    )
    store = FakeDocumentStore()
    context = RunContext(snapshot=make_snapshot(package))

    _orchestrator(store, post_processor=_DropsSecondId()).run(context)

    assert sorted(store.records) == ["res-1", "res-3"]
    assert context.stats.inserted == 2
    assert context.stats.errors == 1
    assert "res-2" in context.stats.err_log[0]
