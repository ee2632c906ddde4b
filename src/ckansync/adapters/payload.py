"""Download resource payloads over HTTP."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from ckansync.adapters.http_resilience import ResilientClient, default_client_factory
from ckansync.config.ckan import get_payload_resilience
from ckansync.domain.errors import PayloadFetchError

if TYPE_CHECKING:
    from collections.abc import Callable

    from ckansync.config.http_resilience import ResilienceConfig
    from ckansync.domain.ports.fetching import PayloadFetcher

log = getLogger(__name__)


@dataclass(slots=True)
class HttpPayloadFetcher:
    """Fetch a resource body as text, decoding it as UTF-8 unless the server says otherwise."""

    resilience: ResilienceConfig = field(default_factory=get_payload_resilience)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )

    def __call__(self, url: str) -> str:
        try:
            return asyncio.run(self._fetch_async(url))
        except httpx.HTTPError as exc:
            raise PayloadFetchError(f"{type(exc).__name__}: {exc}", url=url) from exc

    async def _fetch_async(self, url: str) -> str:
        async with self.client_factory(self.resilience) as client:
            response = await client.get(url)
            response.raise_for_status()
            if response.charset_encoding is None:
                response.encoding = "utf-8"
            log.debug("Downloaded %s bytes from %s", len(response.content), url)
            return response.text


if TYPE_CHECKING:
    _fetcher_check: PayloadFetcher = HttpPayloadFetcher()
