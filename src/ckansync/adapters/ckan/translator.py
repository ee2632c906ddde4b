"""Translate CKAN payloads into catalog domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from ckansync.domain.model import (
    Extra,
    Group,
    Organization,
    Package,
    Resource,
    Tag,
    Vocabulary,
)

from .schema import PackagePayload, VocabularyPayload

if TYPE_CHECKING:
    from .schema import ResourcePayload

PackagePayloadInput = PackagePayload | Mapping[str, object]


def parse_package(payload: PackagePayloadInput) -> Package:
    """Validate ``payload`` if needed and build a ``Package``."""

    model = (
        payload if isinstance(payload, PackagePayload) else PackagePayload.model_validate(payload)
    )
    organization = model.organization
    return Package(
        id=model.id,
        name=model.name,
        title=model.title,
        notes=model.notes,
        url=model.url,
        created=model.metadata_created,
        updated=model.updated,
        organization=(
            Organization(name=organization.name, title=organization.title)
            if organization is not None
            else None
        ),
        resources=tuple(_resource(resource) for resource in model.resources),
        groups=tuple(Group(name=group.name, title=group.title) for group in model.groups),
        tags=tuple(
            Tag(
                display_name=tag.display_name,
                name=tag.name,
                state=tag.state,
                vocabulary_id=tag.vocabulary_id,
            )
            for tag in model.tags
        ),
        extras=tuple(
            Extra(key=extra.key, value=extra.value, state=extra.state) for extra in model.extras
        ),
    )


def _resource(payload: ResourcePayload) -> Resource:
    return Resource(
        id=payload.id,
        name=payload.name,
        description=payload.description,
        url=payload.url,
        format=payload.format,
        created=payload.created,
        updated=payload.updated,
    )


def parse_vocabulary(payload: VocabularyPayload | Mapping[str, object]) -> Vocabulary:
    model = (
        payload
        if isinstance(payload, VocabularyPayload)
        else VocabularyPayload.model_validate(payload)
    )
    return Vocabulary(id=model.id, name=model.name)
