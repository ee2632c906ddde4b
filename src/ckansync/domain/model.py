"""Catalog entities and the local item record shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Iterator

ACTIVE_STATE: Final[str] = "active"

CKAN_ID: Final[str] = "ckan_id"
"""Stable external identifier; the only key used to match items."""

RECORD_KEY: Final[str] = "_id"
"""Persistent key assigned by the document store."""

DATA_FIELD: Final[str] = "data"
"""Parsed payload attached by enrichment; never compared."""

DEFAULT_FACET: Final[str] = "tags"

Item: TypeAlias = dict[str, Any]
"""A local record: a JSON-able document keyed by field name."""


@dataclass(slots=True, frozen=True)
class Organization:
    name: str
    title: str | None = None


@dataclass(slots=True, frozen=True)
class Group:
    name: str
    title: str | None = None


@dataclass(slots=True, frozen=True)
class Tag:
    """A package tag, optionally attached to a vocabulary."""

    display_name: str
    name: str | None = None
    state: str = ACTIVE_STATE
    vocabulary_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.state == ACTIVE_STATE


@dataclass(slots=True, frozen=True)
class Extra:
    key: str
    value: Any = None
    state: str = ACTIVE_STATE

    @property
    def is_active(self) -> bool:
        return self.state == ACTIVE_STATE


@dataclass(slots=True, frozen=True)
class Resource:
    """A single downloadable file belonging to a package."""

    id: str
    name: str | None = None
    description: str | None = None
    url: str | None = None
    format: str | None = None
    created: str | None = None
    updated: str | None = None

    def as_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "format": self.format,
            "created": self.created,
            "updated": self.updated,
        }


@dataclass(slots=True, frozen=True)
class Package:
    """A dataset-level catalog entity."""

    id: str
    title: str | None = None
    name: str | None = None
    notes: str | None = None
    url: str | None = None
    created: str | None = None
    updated: str | None = None
    organization: Organization | None = None
    resources: tuple[Resource, ...] = ()
    groups: tuple[Group, ...] = ()
    tags: tuple[Tag, ...] = ()
    extras: tuple[Extra, ...] = ()


@dataclass(slots=True, frozen=True)
class Vocabulary:
    id: str
    name: str


@dataclass(slots=True)
class CatalogSnapshot:
    """All packages fetched in one run, in catalog iteration order."""

    packages: dict[str, Package] = field(default_factory=dict[str, Package])

    def __len__(self) -> int:
        return len(self.packages)

    def __iter__(self) -> Iterator[Package]:
        return iter(self.packages.values())

    def identifiers(self, *, group_by_package: bool) -> set[str]:
        """Return the ``ckan_id`` of every item this snapshot produces."""

        if group_by_package:
            return set(self.packages)
        return {resource.id for package in self for resource in package.resources}
