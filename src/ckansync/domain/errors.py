"""Errors raised across the catalog sync ports.

Run-fatal: ``CatalogExportError`` and ``StoreConnectionError``. Everything else
is scoped to a single item or tag and is recorded in the run statistics.
"""

from __future__ import annotations


class SyncError(RuntimeError):
    """Base class for catalog synchronisation failures."""


class CatalogExportError(SyncError):
    """Raised when the catalog snapshot cannot be fetched."""


class VocabularyLookupError(SyncError):
    """Raised when a vocabulary id cannot be resolved to a facet name."""

    def __init__(self, message: str, *, vocabulary_id: str) -> None:
        super().__init__(message)
        self.vocabulary_id = vocabulary_id


class StoreError(SyncError):
    """Base class for document store failures."""


class StoreConnectionError(StoreError):
    """Raised when the document store cannot be reached."""


class StoreLookupError(StoreError):
    """Raised when reading from the document store fails."""


class StoreWriteError(StoreError):
    """Raised when an insert, update or delete fails."""


class PayloadFetchError(SyncError):
    """Raised when a resource payload cannot be downloaded."""

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class EnrichmentError(SyncError):
    """Raised when a resource payload cannot be fetched or parsed."""


class PostProcessingError(SyncError):
    """Raised when the item post-processor fails."""
