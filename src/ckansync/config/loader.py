"""Load a run configuration from a TOML file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar, cast

from .ckan import DEFAULT_PAGE_SIZE, CkanConfig, get_ckan_config, get_payload_resilience
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import DEFAULT_TIMEOUT_SECONDS, ResilienceConfig
from .storage import DEFAULT_MAIN_COLLECTION, CollectionNames, DatabaseConfig, get_database_uri
from .sync import SyncConfig

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class RunConfig:
    ckan: CkanConfig
    database: DatabaseConfig
    sync: SyncConfig
    payloads: ResilienceConfig

    def with_overrides(
        self,
        *,
        verbose: bool | None = None,
        group_by_package: bool | None = None,
    ) -> RunConfig:
        """Return a copy with command-line switches applied."""

        sync = self.sync
        if verbose is not None:
            sync = replace(sync, verbose=verbose)
        if group_by_package is not None:
            sync = replace(sync, group_by_package=group_by_package)
        return replace(self, sync=sync)


def load_run_config(path: str | Path) -> RunConfig:
    """Parse ``path`` into a ``RunConfig``.

    Relative plugin paths are resolved against the config file's directory.
    Raises ``ConfigurationError`` for unreadable or invalid files and
    ``MissingConfigurationError`` when ``ckan.server`` is absent.
    """

    config_path = Path(path)
    try:
        with config_path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Config file not found: {config_path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {config_path}: {exc}") from exc

    base_dir = config_path.resolve().parent
    ckan_section = _section(document, "ckan")
    db_section = _section(document, "db")
    import_section = _section(document, "import")
    http_section = _section(document, "http")

    server = _optional(ckan_section, "ckan", "server", str)
    if server is None or not server.strip():
        raise MissingConfigurationError("Missing configuration for: ckan.server")

    timeout = float(
        _optional(http_section, "http", "timeout_seconds", (int, float)) or DEFAULT_TIMEOUT_SECONDS
    )
    ckan = get_ckan_config(
        server.strip(),
        page_size=_optional(ckan_section, "ckan", "page_size", int) or DEFAULT_PAGE_SIZE,
        timeout_seconds=timeout,
    )

    database = DatabaseConfig(
        uri=get_database_uri(_optional(db_section, "db", "url", str)),
        collections=CollectionNames(
            main=_optional(db_section, "db", "main_collection", str) or DEFAULT_MAIN_COLLECTION,
            stats=_optional(db_section, "db", "stats_collection", str),
            cache=_optional(db_section, "db", "cache_collection", str),
        ),
    )

    parsers = _optional(ckan_section, "ckan", "parsers", str)
    post_processor = _optional(ckan_section, "ckan", "post_processor", str)
    sync = SyncConfig(
        verbose=bool(_optional(import_section, "import", "verbose", bool)),
        group_by_package=bool(_optional(import_section, "import", "group_by_package", bool)),
        cleanup_requires_changes=bool(
            _optional(import_section, "import", "cleanup_requires_changes", bool)
        ),
        keep_on_empty_catalog=bool(
            _optional(import_section, "import", "keep_on_empty_catalog", bool)
        ),
        parsers_dir=(base_dir / parsers) if parsers else None,
        post_processor=_resolve_plugin_path(post_processor, base_dir),
    )

    payloads = get_payload_resilience(
        timeout_seconds=timeout,
        cache_payloads=bool(_optional(http_section, "http", "cache_payloads", bool)),
    )
    return RunConfig(ckan=ckan, database=database, sync=sync, payloads=payloads)


def _section(document: Mapping[str, object], name: str) -> Mapping[str, object]:
    value = document.get(name, {})
    if not isinstance(value, dict):
        raise ConfigurationError(f"Config section [{name}] must be a table")
    return cast("Mapping[str, object]", value)


T = TypeVar("T")


def _optional(
    section: Mapping[str, object],
    section_name: str,
    key: str,
    expected: type[T] | tuple[type, ...],
) -> T | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, expected):
        raise ConfigurationError(f"Config value {section_name}.{key} has invalid type")
    return cast("T", value)


def _resolve_plugin_path(value: str | None, base_dir: Path) -> str | None:
    """File paths are made absolute; dotted module paths are kept as-is."""

    if not value:
        return None
    if value.endswith(".py") or "/" in value or "\\" in value:
        return str(base_dir / value)
    return value
