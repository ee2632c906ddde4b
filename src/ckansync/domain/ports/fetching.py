"""Ports for downloading resource payloads."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PayloadFetcher(Protocol):
    """Callable port returning the textual body behind a resource URL."""

    def __call__(self, url: str) -> str:
        ...


__all__ = ["PayloadFetcher"]
