"""HTTP client for the CKAN action API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from ckansync.adapters.http_resilience import ResilientClient, default_client_factory
from ckansync.domain.errors import CatalogExportError, VocabularyLookupError
from ckansync.domain.model import CatalogSnapshot

from .schema import ActionResponse, PackageSearchResult
from .translator import parse_package, parse_vocabulary

if TYPE_CHECKING:
    from collections.abc import Callable

    from ckansync.config.ckan import CkanConfig
    from ckansync.config.http_resilience import ResilienceConfig
    from ckansync.domain.model import Package, Vocabulary
    from ckansync.domain.ports.catalog import CatalogSource

log = getLogger(__name__)

PACKAGE_SORT = "name asc"


class CkanAPIError(RuntimeError):
    """Raised when the CKAN API answers with ``success: false`` or an unreadable body."""

    def __init__(self, message: str, *, error_type: str | None = None) -> None:
        super().__init__(message)
        self.error_type = error_type


class CkanClient:
    """Catalog source backed by ``package_search`` and ``vocabulary_show``."""

    def __init__(
        self,
        *,
        config: CkanConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or default_client_factory

    def export(self) -> CatalogSnapshot:
        try:
            return asyncio.run(self._export_async())
        except (httpx.HTTPError, ValidationError, CkanAPIError) as exc:
            log.error("CKAN export from %s failed: %s", self._config.server, exc)
            message = f"Failed to export catalog from {self._config.server}"
            raise CatalogExportError(message) from exc

    def lookup_vocabulary(self, vocabulary_id: str) -> Vocabulary:
        try:
            return asyncio.run(self._lookup_vocabulary_async(vocabulary_id))
        except (httpx.HTTPError, ValidationError, CkanAPIError) as exc:
            raise VocabularyLookupError(
                f"Failed to look up vocabulary {vocabulary_id}: {exc}",
                vocabulary_id=vocabulary_id,
            ) from exc

    async def _export_async(self) -> CatalogSnapshot:
        packages: dict[str, Package] = {}
        start = 0
        async with self._client_factory(self._resilience) as client:
            while True:
                result = PackageSearchResult.model_validate(
                    await self._perform_action(
                        client=client,
                        action="package_search",
                        params={
                            "rows": str(self._config.page_size),
                            "start": str(start),
                            "sort": PACKAGE_SORT,
                        },
                    )
                )
                for payload in result.results:
                    packages[payload.id] = parse_package(payload)

                start += len(result.results)
                log.debug("Fetched %s/%s packages", start, result.count)
                if not result.results or start >= result.count:
                    break

        return CatalogSnapshot(packages=packages)

    async def _lookup_vocabulary_async(self, vocabulary_id: str) -> Vocabulary:
        async with self._client_factory(self._resilience) as client:
            result = await self._perform_action(
                client=client,
                action="vocabulary_show",
                params={"id": vocabulary_id},
            )
        if not isinstance(result, dict):
            raise CkanAPIError("Unexpected vocabulary_show payload")
        return parse_vocabulary(result)

    async def _perform_action(
        self,
        *,
        client: ResilientClient,
        action: str,
        params: dict[str, str],
    ) -> object:
        response = await client.get(action, params=params)
        try:
            payload = response.json()
        except ValueError:
            response.raise_for_status()
            raise CkanAPIError(f"CKAN {action} returned a non-JSON body") from None

        if not isinstance(payload, dict) or "success" not in payload:
            response.raise_for_status()
            raise CkanAPIError(f"Unexpected CKAN {action} response payload")

        envelope = ActionResponse.model_validate(payload)
        if not envelope.success:
            error = envelope.error
            message = (error.message if error else None) or f"CKAN {action} failed"
            raise CkanAPIError(message, error_type=error.type if error else None)

        response.raise_for_status()
        return envelope.result


if TYPE_CHECKING:
    from ckansync.config.ckan import get_ckan_config

    _catalog_check: CatalogSource = CkanClient(config=get_ckan_config("http://localhost"))
