"""Capability ports for pluggable format parsers and item post-processors."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, cast, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ckansync.domain.model import Item


@dataclass(slots=True, frozen=True)
class ParsedPayload:
    """Parser output: the payload itself plus fields to merge into the item."""

    data: object = None
    filters: Mapping[str, object] = field(default_factory=dict[str, object])

    @classmethod
    def from_result(cls, result: object) -> ParsedPayload:
        """Accept either a ``ParsedPayload`` or a ``{"data", "filters"}`` mapping."""

        if isinstance(result, ParsedPayload):
            return result
        if not isinstance(result, Mapping):
            raise TypeError(f"Parser returned {type(result).__name__}, expected a mapping")
        mapping = cast(Mapping[str, object], result)
        filters = mapping.get("filters") or {}
        if not isinstance(filters, Mapping):
            raise TypeError("Parser filters must be a mapping of field name to value")
        return cls(data=mapping.get("data"), filters=dict(cast(Mapping[str, object], filters)))


@runtime_checkable
class FormatParser(Protocol):
    """Turns a raw resource body into a ``ParsedPayload``-like result."""

    def parse(self, raw: str) -> ParsedPayload | Mapping[str, object]: ...


@runtime_checkable
class ItemPostProcessor(Protocol):
    """Hook that may mutate a fully built item in place."""

    def process(self, item: Item) -> None: ...


class ParserRegistry:
    """Format name to parser mapping; lookups ignore case and surrounding blanks."""

    def __init__(self, parsers: Mapping[str, FormatParser] | None = None) -> None:
        self._parsers: dict[str, FormatParser] = {}
        for name, parser in (parsers or {}).items():
            self.register(name, parser)

    @staticmethod
    def _key(name: str) -> str:
        return name.strip().lower()

    def register(self, name: str, parser: FormatParser) -> None:
        self._parsers[self._key(name)] = parser

    def get(self, name: object) -> FormatParser | None:
        if not isinstance(name, str) or not name.strip():
            return None
        return self._parsers.get(self._key(name))

    @property
    def formats(self) -> tuple[str, ...]:
        return tuple(sorted(self._parsers))

    def __len__(self) -> int:
        return len(self._parsers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._parsers)


__all__ = ["FormatParser", "ItemPostProcessor", "ParsedPayload", "ParserRegistry"]
