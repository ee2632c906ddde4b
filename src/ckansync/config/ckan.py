"""CKAN catalog and resource download configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from ckansync import __version__

from .http_resilience import (
    DEFAULT_TIMEOUT_SECONDS,
    CacheConfig,
    RateLimit,
    ResilienceConfig,
)

CKAN_API_PATH = "/api/3/action/"
DEFAULT_PAGE_SIZE = 1000
DEFAULT_HEADERS = {"User-Agent": f"ckan-sync/{__version__}"}


@dataclass(frozen=True, slots=True)
class CkanConfig:
    """Holds CKAN action API settings."""

    server: str
    resilience: ResilienceConfig
    page_size: int = DEFAULT_PAGE_SIZE


def api_base_url(server: str) -> str:
    return server.rstrip("/") + CKAN_API_PATH


def get_ckan_config(
    server: str,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> CkanConfig:
    return CkanConfig(
        server=server,
        page_size=page_size,
        resilience=ResilienceConfig(
            name="ckan",
            base_url=api_base_url(server),
            timeout_seconds=timeout_seconds,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={**DEFAULT_HEADERS, "Accept": "application/json"},
        ),
    )


def get_payload_resilience(
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    cache_payloads: bool = False,
) -> ResilienceConfig:
    """Settings for resource downloads; caching honours the servers' HTTP cache headers."""

    return ResilienceConfig(
        name="payloads",
        timeout_seconds=timeout_seconds,
        cache=CacheConfig(backend="sqlite") if cache_payloads else None,
        default_headers=DEFAULT_HEADERS,
    )
