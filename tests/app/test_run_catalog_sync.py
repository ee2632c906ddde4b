from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ckansync.adapters.sqlalchemy.unit_of_work import SqlAlchemyStoreUnitOfWork, shutdown
from ckansync.app import run_catalog_sync
from ckansync.config import load_run_config
from ckansync.domain.ports.plugins import ParserRegistry
from tests.helpers.catalog import (
    CsvShapeParser,
    FakeCatalogSource,
    FakeDocumentStore,
    FakeStatsRepository,
    FakeUnitOfWork,
    RecordingFetcher,
    make_package,
    make_resource,
)

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

CSV_URL = "https://example.org/data.csv"


def _config_file(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "ckan-sync.toml"
    path.write_text('[ckan]\nserver = "https://demo.ckan.org"\n' + body)
    return path


def test_run_uses_supplied_adapters(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    config = load_run_config(_config_file(tmp_path, "[import]\ngroup_by_package = false\n"))
    package = make_package(
        resources=[make_resource("A", url=CSV_URL), make_resource("B", url="https://x/404.csv")]
    )
    store = FakeDocumentStore()
    stats_repo = FakeStatsRepository()

    with caplog.at_level(logging.INFO, logger="ckansync.app"):
        stats = run_catalog_sync(
            config,
            catalog=FakeCatalogSource([package]),
            unit_of_work_factory=lambda: FakeUnitOfWork(store, stats=stats_repo),
            fetch_payload=RecordingFetcher({CSV_URL: "a,b\n1,2"}),
            parsers=ParserRegistry({"csv": CsvShapeParser()}),
        )

    assert stats.inserted == 2
    assert stats.enrichment_failures == 1
    assert store.records["A"]["cols"] == 2
    assert stats_repo.items == [stats]
    error_records = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert [record.getMessage() for record in error_records] == stats.err_log
    assert any("Finished CKAN sync" in record.getMessage() for record in caplog.records)


def test_run_loads_plugins_and_starts_sqlite_store(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    parsers_dir = tmp_path / "parsers"
    parsers_dir.mkdir()
    (parsers_dir / "csv.py").write_text(
        "def parse(raw):\n    return {'data': raw, 'filters': {'size': len(raw)}}\n"
    )
    (tmp_path / "post.py").write_text("def process(item):\n    item['origin'] = 'demo'\n")
    monkeypatch.setenv("DATABASE_URI", f"sqlite+pysqlite:///{tmp_path / 'store.db'}")
    config = load_run_config(
        _config_file(
            tmp_path,
            'parsers = "parsers"\npost_processor = "post.py"\n'
            "[db]\nstats_collection = 'sync_stats'\n",
        )
    )

    stats = run_catalog_sync(
        config,
        catalog=FakeCatalogSource([make_package(resources=[make_resource("A", url=CSV_URL)])]),
        fetch_payload=RecordingFetcher({CSV_URL: "a,b"}),
    )

    try:
        with SqlAlchemyStoreUnitOfWork() as uow:
            (record,) = uow.repositories.items.find({"ckan_id": "A"})
    finally:
        shutdown()

    assert stats.inserted == 1
    assert record["size"] == 3
    assert record["data"] == "a,b"
    assert record["origin"] == "demo"
