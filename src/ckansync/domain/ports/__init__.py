"""Domain port definitions for adapters."""

from __future__ import annotations

from .catalog import CatalogSource
from .fetching import PayloadFetcher
from .persistence import DocumentStore, Query, ResultCache, StatsRepository
from .plugins import FormatParser, ItemPostProcessor, ParsedPayload, ParserRegistry
from .unit_of_work import StoreRepositories, StoreUnitOfWork

__all__ = [
    "CatalogSource",
    "DocumentStore",
    "FormatParser",
    "ItemPostProcessor",
    "ParsedPayload",
    "ParserRegistry",
    "PayloadFetcher",
    "Query",
    "ResultCache",
    "StatsRepository",
    "StoreRepositories",
    "StoreUnitOfWork",
]
