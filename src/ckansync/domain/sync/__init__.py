"""Reconciliation engine keeping the local item store in step with the catalog.

The engine is split into small stages that each own one decision: building
candidates, resolving tag vocabularies, enriching from resource payloads,
detecting changes, writing, and finally removing orphans.
"""

from __future__ import annotations

from .changes import differs
from .cleanup import CleanupPass, CleanupResult
from .context import RunContext, SyncOptions, SyncStats
from .enrichment import EnrichedItem, ResourceEnricher
from .items import ItemBuilder
from .orchestrator import SyncOrchestrator, SyncUnit, UnitOutcome
from .vocabulary import VocabularyResolver

__all__ = [
    "CleanupPass",
    "CleanupResult",
    "EnrichedItem",
    "ItemBuilder",
    "ResourceEnricher",
    "RunContext",
    "SyncOptions",
    "SyncOrchestrator",
    "SyncStats",
    "SyncUnit",
    "UnitOutcome",
    "VocabularyResolver",
    "differs",
]
