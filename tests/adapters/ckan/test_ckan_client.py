from __future__ import annotations

from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from ckansync.adapters.ckan import CkanClient
from ckansync.adapters.http_resilience import ResilienceConfig, ResilientClient
from ckansync.config.ckan import get_ckan_config
from ckansync.domain.errors import CatalogExportError, VocabularyLookupError

SERVER = "https://ckan.example.org"


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def _package(package_id: str, *resource_ids: str) -> dict[str, object]:
    return {
        "id": package_id,
        "name": package_id,
        "title": f"Package {package_id}",
        "notes": None,
        "metadata_created": "2024-01-01T00:00:00",
        "metadata_modified": "2024-01-02T00:00:00",
        "organization": {"name": "city", "title": "City Council"},
        "resources": [
            {"id": rid, "name": rid, "url": f"{SERVER}/{rid}.csv", "format": "CSV"}
            for rid in resource_ids
        ],
        "groups": [],
        "tags": [{"display_name": "air", "name": "air", "vocabulary_id": None}],
        "extras": [{"key": "frequency", "value": "daily"}],
    }


def _ok(result: object) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "result": result})


def test_export_pages_through_package_search() -> None:
    pages = {
        "0": [_package("pkg-1", "res-1"), _package("pkg-2", "res-2", "res-3")],
        "2": [_package("pkg-3")],
    }
    seen: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/3/action/package_search"
        params = dict(request.url.params)
        seen.append(params)
        return _ok({"count": 3, "results": pages[params["start"]]})

    config = get_ckan_config(SERVER, page_size=2)
    client = CkanClient(config=config, client_factory=_make_client_factory(handler))

    snapshot = client.export()

    assert [package.id for package in snapshot] == ["pkg-1", "pkg-2", "pkg-3"]
    assert snapshot.identifiers(group_by_package=False) == {"res-1", "res-2", "res-3"}
    assert [params["start"] for params in seen] == ["0", "2"]
    assert {params["rows"] for params in seen} == {"2"}
    assert seen[0]["sort"] == "name asc"
    assert snapshot.packages["pkg-2"].organization is not None


def test_export_stops_on_empty_page() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok({"count": 10, "results": []})

    client = CkanClient(
        config=get_ckan_config(SERVER), client_factory=_make_client_factory(handler)
    )

    assert len(client.export()) == 0


def test_export_failure_envelope_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            403,
            json={
                "success": False,
                "error": {"message": "Access denied", "__type": "Authorization Error"},
            },
        )

    client = CkanClient(
        config=get_ckan_config(SERVER), client_factory=_make_client_factory(handler)
    )

    with pytest.raises(CatalogExportError) as exc:
        client.export()

    assert "Access denied" in str(exc.value.__cause__)


def test_export_invalid_payload_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok({"count": "many", "results": [{"title": "no id"}]})

    client = CkanClient(
        config=get_ckan_config(SERVER), client_factory=_make_client_factory(handler)
    )

    with pytest.raises(CatalogExportError):
        client.export()


def test_lookup_vocabulary_returns_name() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/3/action/vocabulary_show"
        assert request.url.params["id"] == "v-1"
        return _ok({"id": "v-1", "name": "themes", "tags": []})

    client = CkanClient(
        config=get_ckan_config(SERVER), client_factory=_make_client_factory(handler)
    )

    vocabulary = client.lookup_vocabulary("v-1")

    assert vocabulary.name == "themes"


def test_lookup_vocabulary_not_found_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            json={"success": False, "error": {"message": "Not found", "__type": "Not Found Error"}},
        )

    client = CkanClient(
        config=get_ckan_config(SERVER), client_factory=_make_client_factory(handler)
    )

    with pytest.raises(VocabularyLookupError) as exc:
        client.lookup_vocabulary("missing")

    assert exc.value.vocabulary_id == "missing"
