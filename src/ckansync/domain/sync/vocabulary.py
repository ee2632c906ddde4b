"""Resolution of tag vocabulary ids into facet names."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from ckansync.domain.errors import VocabularyLookupError
from ckansync.domain.model import DEFAULT_FACET

if TYPE_CHECKING:
    from ckansync.domain.model import Tag
    from ckansync.domain.ports.catalog import CatalogSource

log = getLogger(__name__)


class VocabularyResolver:
    """Map tags to the facet list they belong to.

    Resolved names are cached in ``cache`` (vocabulary id -> facet name), so a
    vocabulary is looked up remotely at most once per cache lifetime. Failed
    lookups are not cached; a later tag of the same vocabulary retries.
    """

    def __init__(self, catalog: CatalogSource, cache: dict[str, str] | None = None) -> None:
        self._catalog = catalog
        self.cache: dict[str, str] = cache if cache is not None else {}

    def resolve(self, tag: Tag) -> str | None:
        """Return the facet for ``tag``, or ``None`` when it must be dropped."""

        vocabulary_id = tag.vocabulary_id
        if not vocabulary_id:
            return DEFAULT_FACET

        cached = self.cache.get(vocabulary_id)
        if cached is not None:
            return cached

        try:
            vocabulary = self._catalog.lookup_vocabulary(vocabulary_id)
        except VocabularyLookupError as exc:
            log.info(
                "Dropping tag %r: vocabulary %s lookup failed: %s",
                tag.display_name,
                vocabulary_id,
                exc,
            )
            return None

        self.cache[vocabulary_id] = vocabulary.name
        return vocabulary.name
