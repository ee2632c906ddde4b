"""Synchronization switches and plugin locations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True, slots=True)
class SyncConfig:
    verbose: bool = False
    group_by_package: bool = False
    cleanup_requires_changes: bool = False
    keep_on_empty_catalog: bool = False
    parsers_dir: Path | None = None
    post_processor: str | None = None
