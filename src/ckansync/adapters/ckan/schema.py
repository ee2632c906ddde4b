"""Pydantic models describing CKAN action API payloads."""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class CkanBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorPayload(CkanBaseModel):
    message: str | None = None
    type: str | None = Field(default=None, alias="__type")


class ActionResponse(CkanBaseModel):
    """Envelope returned by every ``/api/3/action/*`` endpoint."""

    success: bool
    result: object = None
    error: ErrorPayload | None = None


class OrganizationPayload(CkanBaseModel):
    name: str
    title: str | None = None


class GroupPayload(CkanBaseModel):
    name: str
    title: str | None = None


class TagPayload(CkanBaseModel):
    display_name: str
    name: str | None = None
    state: str = "active"
    vocabulary_id: str | None = None

    _normalize_vocabulary = field_validator("vocabulary_id", mode="before")(_blank_to_none)


class ExtraPayload(CkanBaseModel):
    key: str
    value: object = None
    state: str = "active"

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> object:
        # extras are strings in the API, but some harvesters push raw JSON
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value)


class ResourcePayload(CkanBaseModel):
    id: str
    name: str | None = None
    description: str | None = None
    url: str | None = None
    format: str | None = None
    created: str | None = None
    revision_timestamp: str | None = None
    last_modified: str | None = None
    metadata_modified: str | None = None

    _normalize_url = field_validator("url", "format", mode="before")(_blank_to_none)

    @property
    def updated(self) -> str | None:
        return self.revision_timestamp or self.last_modified or self.metadata_modified


class PackagePayload(CkanBaseModel):
    id: str
    name: str | None = None
    title: str | None = None
    notes: str | None = None
    url: str | None = None
    metadata_created: str | None = None
    metadata_modified: str | None = None
    revision_timestamp: str | None = None
    organization: OrganizationPayload | None = None
    resources: list[ResourcePayload] = Field(default_factory=list[ResourcePayload])
    groups: list[GroupPayload] = Field(default_factory=list[GroupPayload])
    tags: list[TagPayload] = Field(default_factory=list[TagPayload])
    extras: list[ExtraPayload] = Field(default_factory=list[ExtraPayload])

    _normalize_url = field_validator("url", mode="before")(_blank_to_none)

    @field_validator("resources", "groups", "tags", "extras", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def updated(self) -> str | None:
        return self.revision_timestamp or self.metadata_modified


class PackageSearchResult(CkanBaseModel):
    count: int
    results: list[PackagePayload]


class VocabularyPayload(CkanBaseModel):
    id: str
    name: str
