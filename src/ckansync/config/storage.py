"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "ckansync"
DEFAULT_DB_FILENAME: Final[str] = "ckansync.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
DEFAULT_MAIN_COLLECTION: Final[str] = "items"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    http_cache_filename: str = HTTP_CACHE_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.http_cache_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class CollectionNames:
    """Table names standing in for the store's collections."""

    main: str = DEFAULT_MAIN_COLLECTION
    stats: str | None = None
    cache: str | None = None


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    collections: CollectionNames = field(default_factory=CollectionNames)


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("CKANSYNC_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)


def get_database_uri(configured: str | None = None, *, storage: StorageConfig | None = None) -> str:
    """Resolve the store URI: ``DATABASE_URI`` env, then the config file, then the data dir."""

    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return env_uri
    if configured:
        return configured
    storage_config = storage or get_storage_config()
    return storage_config.database_uri()


def get_http_cache_path() -> Path:
    return get_storage_config().http_cache_path()
