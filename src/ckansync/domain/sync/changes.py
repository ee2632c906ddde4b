"""Structural comparison of a candidate item against its stored record.

The comparison is deliberately one-sided and order-sensitive:

- only keys present on the candidate are inspected, so a field that exists
  solely on the stored record never causes an update;
- list fields compare element by element, so a reordered list counts as a
  change even when it holds the same values.

Callers must keep tag and group ordering stable across runs to avoid
needless writes.
"""

from __future__ import annotations

import json
from collections.abc import Collection, Mapping, Sequence
from typing import TYPE_CHECKING, cast

from ckansync.domain.model import DATA_FIELD

if TYPE_CHECKING:
    from ckansync.domain.model import Item

_MISSING = object()


def differs(candidate: Item, stored: Item, *, ignored: Collection[str] = ()) -> bool:
    """Return ``True`` when any candidate field disagrees with ``stored``.

    ``data`` and every key in ``ignored`` are skipped.
    """

    for key, value in candidate.items():
        if key == DATA_FIELD or key in ignored:
            continue
        if _field_differs(value, stored.get(key, _MISSING)):
            return True
    return False


def _field_differs(value: object, stored: object) -> bool:
    if isinstance(value, str):
        return value != stored

    sequence = _as_sequence(value)
    if sequence is None:
        return stored is _MISSING or value != stored

    stored_sequence = _as_sequence(stored)
    if stored_sequence is None or len(sequence) != len(stored_sequence):
        return True
    return any(
        _element_differs(left, right)
        for left, right in zip(sequence, stored_sequence, strict=True)
    )


def _as_sequence(value: object) -> list[object] | None:
    if isinstance(value, Mapping):
        return [list(pair) for pair in cast(Mapping[object, object], value).items()]
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return list(cast(Sequence[object], value))
    return None


def _element_differs(left: object, right: object) -> bool:
    if isinstance(left, (Mapping, list, tuple)) or isinstance(right, (Mapping, list, tuple)):
        return _serialize(left) != _serialize(right)
    return left != right


def _serialize(value: object) -> str:
    return json.dumps(value, default=str, separators=(",", ":"))
