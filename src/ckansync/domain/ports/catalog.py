"""Ports for reading the remote catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ckansync.domain.model import CatalogSnapshot, Vocabulary


@runtime_checkable
class CatalogSource(Protocol):
    """Remote catalog exposing a bulk export and vocabulary lookups."""

    def export(self) -> CatalogSnapshot:
        """Fetch every package of the catalog in one pass.

        Raises ``CatalogExportError`` when the snapshot cannot be built.
        """
        ...

    def lookup_vocabulary(self, vocabulary_id: str) -> Vocabulary:
        """Resolve a vocabulary id; raises ``VocabularyLookupError`` on failure."""
        ...


__all__ = ["CatalogSource"]
