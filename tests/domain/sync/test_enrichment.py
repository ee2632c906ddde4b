from __future__ import annotations

import pytest

from ckansync.domain.errors import EnrichmentError
from ckansync.domain.ports.plugins import ParsedPayload, ParserRegistry
from ckansync.domain.sync import ResourceEnricher
from tests.helpers.catalog import CsvShapeParser, RecordingFetcher

CSV_URL = "https://example.org/data.csv"


def _item(**overrides: object) -> dict[str, object]:
    item: dict[str, object] = {"ckan_id": "res-1", "url": CSV_URL, "format": "CSV"}
    item.update(overrides)
    return item


def _enricher(fetcher: RecordingFetcher, **parsers: object) -> ResourceEnricher:
    registry = ParserRegistry()
    for name, parser in (parsers or {"csv": CsvShapeParser()}).items():
        registry.register(name, parser)  # type: ignore[arg-type]
    return ResourceEnricher(registry, fetcher)


def test_csv_payload_is_parsed_and_merged() -> None:
    fetcher = RecordingFetcher({CSV_URL: "a,b\n1,2"})
    item = _item()

    enriched = _enricher(fetcher).enrich(item)

    assert enriched.item["cols"] == 2
    assert enriched.item["data"] == [["a", "b"], ["1", "2"]]
    assert enriched.derived_fields == frozenset({"cols"})
    assert "data" not in item
    assert fetcher.calls == [CSV_URL]


def test_format_lookup_ignores_case() -> None:
    fetcher = RecordingFetcher({CSV_URL: "a,b,c"})

    enriched = _enricher(fetcher).enrich(_item(format=" csv "))

    assert enriched.item["cols"] == 3


def test_item_without_parser_is_unchanged() -> None:
    fetcher = RecordingFetcher()
    item = _item(format="PDF")

    enriched = _enricher(fetcher).enrich(item)

    assert enriched.item is item
    assert enriched.derived_fields == frozenset()
    assert fetcher.calls == []


@pytest.mark.parametrize("url", [None, ""])
def test_item_without_url_is_unchanged(url: str | None) -> None:
    fetcher = RecordingFetcher()
    item = _item(url=url)

    assert _enricher(fetcher).enrich(item).item is item
    assert fetcher.calls == []


def test_fetch_failure_raises_enrichment_error() -> None:
    with pytest.raises(EnrichmentError) as exc:
        _enricher(RecordingFetcher()).enrich(_item())

    assert CSV_URL in str(exc.value)


class _Exploding:
    def parse(self, raw: str) -> dict[str, object]:
        raise ValueError(f"cannot parse {len(raw)} bytes")


class _NotAMapping:
    def parse(self, raw: str) -> object:
        return raw.split()


def test_parser_failure_raises_enrichment_error() -> None:
    fetcher = RecordingFetcher({CSV_URL: "a,b"})

    with pytest.raises(EnrichmentError) as exc:
        _enricher(fetcher, csv=_Exploding()).enrich(_item())

    assert isinstance(exc.value.__cause__, ValueError)


def test_parser_result_of_wrong_shape_raises_enrichment_error() -> None:
    fetcher = RecordingFetcher({CSV_URL: "a,b"})

    with pytest.raises(EnrichmentError):
        _enricher(fetcher, csv=_NotAMapping()).enrich(_item())


class _Reserved:
    def parse(self, raw: str) -> ParsedPayload:
        return ParsedPayload(data=raw, filters={"ckan_id": "hijack", "_id": "x", "rows": 1})


def test_reserved_filter_keys_are_not_merged() -> None:
    fetcher = RecordingFetcher({CSV_URL: "a,b"})

    enriched = _enricher(fetcher, csv=_Reserved()).enrich(_item())

    assert enriched.item["ckan_id"] == "res-1"
    assert "_id" not in enriched.item
    assert enriched.item["rows"] == 1
    assert enriched.item["data"] == "a,b"
    assert enriched.derived_fields == frozenset({"rows"})
