"""Build local item records from catalog packages."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from ckansync.domain.errors import PostProcessingError
from ckansync.domain.model import CKAN_ID, Item

if TYPE_CHECKING:
    from ckansync.domain.model import Package, Resource
    from ckansync.domain.ports.plugins import ItemPostProcessor
    from ckansync.domain.sync.vocabulary import VocabularyResolver

log = getLogger(__name__)


class ItemBuilder:
    """Produce candidate items: one per resource, or one per package in group mode."""

    def __init__(
        self,
        vocabulary: VocabularyResolver,
        *,
        post_processor: ItemPostProcessor | None = None,
    ) -> None:
        self._vocabulary = vocabulary
        self._post_processor = post_processor

    def build(self, package: Package, resource: Resource | None = None) -> Item:
        """Return the final candidate for ``resource`` (or ``package`` if omitted).

        Raises ``PostProcessingError`` when the configured post-processor fails.
        """

        item = resource_item(package, resource) if resource is not None else package_item(package)
        self._add_facets(item, package)

        if self._post_processor is not None:
            ckan_id = item[CKAN_ID]
            try:
                self._post_processor.process(item)
            except Exception as exc:  # noqa: BLE001
                raise PostProcessingError(f"Post-processor failed for {ckan_id}: {exc}") from exc
            if not isinstance(item.get(CKAN_ID), str) or not item[CKAN_ID]:
                raise PostProcessingError(
                    f"Post-processor removed or replaced ckan_id of {ckan_id}: "
                    f"{item.get(CKAN_ID)!r}"
                )

        return item

    def _add_facets(self, item: Item, package: Package) -> None:
        for tag in package.tags:
            if not tag.is_active:
                continue
            facet = self._vocabulary.resolve(tag)
            if facet is None:
                continue
            values = item.setdefault(facet, [])
            if not isinstance(values, list):
                log.warning(
                    "Vocabulary %r collides with item field %r; dropping tag %r",
                    tag.vocabulary_id,
                    facet,
                    tag.display_name,
                )
                continue
            values.append(tag.display_name)


def _shared_fields(package: Package) -> Item:
    organization = package.organization
    return {
        "groups": [group.name for group in package.groups],
        "organization": (organization.title or organization.name) if organization else "",
        "package": package.title,
        "notes": package.notes,
        "extras": {extra.key: extra.value for extra in package.extras if extra.is_active},
    }


def resource_item(package: Package, resource: Resource) -> Item:
    item: Item = {
        "title": resource.name,
        "description": resource.description,
        "created": resource.created,
        "updated": resource.updated,
        "url": resource.url,
        "format": resource.format,
        CKAN_ID: resource.id,
    }
    item.update(_shared_fields(package))
    return item


def package_item(package: Package) -> Item:
    item: Item = {
        "title": package.title,
        "description": package.notes,
        "created": package.created,
        "updated": package.updated,
        "url": package.url,
        CKAN_ID: package.id,
    }
    item.update(_shared_fields(package))
    item["resources"] = [resource.as_record() for resource in package.resources]
    return item
