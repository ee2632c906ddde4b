"""Merge parsed resource payloads into candidate items."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from ckansync.domain.errors import EnrichmentError, PayloadFetchError
from ckansync.domain.model import CKAN_ID, DATA_FIELD, RECORD_KEY, Item
from ckansync.domain.ports.plugins import ParsedPayload

if TYPE_CHECKING:
    from ckansync.domain.ports.fetching import PayloadFetcher
    from ckansync.domain.ports.plugins import ParserRegistry

log = getLogger(__name__)

_PROTECTED_FIELDS = frozenset({CKAN_ID, RECORD_KEY, DATA_FIELD})


@dataclass(slots=True, frozen=True)
class EnrichedItem:
    """Candidate item plus the parser-derived fields change detection must skip."""

    item: Item
    derived_fields: frozenset[str] = field(default_factory=frozenset[str])


class ResourceEnricher:
    def __init__(self, parsers: ParserRegistry, fetch: PayloadFetcher) -> None:
        self._parsers = parsers
        self._fetch = fetch

    def enrich(self, item: Item) -> EnrichedItem:
        """Download and parse the item's payload when a parser handles its format.

        The input item is left untouched; the enriched copy carries ``data``
        and the parser's filter fields. Raises ``EnrichmentError``.
        """

        parser = self._parsers.get(item.get("format"))
        url = item.get("url")
        if parser is None or not url:
            return EnrichedItem(item=item)

        try:
            raw = self._fetch(url)
        except PayloadFetchError as exc:
            raise EnrichmentError(f"Failed to fetch {url}: {exc}") from exc

        try:
            parsed = ParsedPayload.from_result(parser.parse(raw))
        except Exception as exc:  # noqa: BLE001
            message = f"Failed to parse {item.get('format')} payload from {url}: {exc}"
            raise EnrichmentError(message) from exc

        enriched = dict(item)
        derived: set[str] = set()
        for key, value in parsed.filters.items():
            if key in _PROTECTED_FIELDS:
                log.warning("Ignoring reserved parser filter %r for %s", key, item.get(CKAN_ID))
                continue
            enriched[key] = value
            derived.add(key)
        enriched[DATA_FIELD] = parsed.data
        return EnrichedItem(item=enriched, derived_fields=frozenset(derived))
