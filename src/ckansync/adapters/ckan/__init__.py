"""Public interface for the CKAN catalog adapter."""

from __future__ import annotations

from .client import CkanAPIError, CkanClient
from .schema import ActionResponse, PackagePayload, PackageSearchResult, VocabularyPayload
from .translator import parse_package, parse_vocabulary

__all__ = [
    "ActionResponse",
    "CkanAPIError",
    "CkanClient",
    "PackagePayload",
    "PackageSearchResult",
    "VocabularyPayload",
    "parse_package",
    "parse_vocabulary",
]
