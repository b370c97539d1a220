"""Where roomsync keeps its membership database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATA_DIR_ENV: Final[str] = "ROOMSYNC_DATA_DIR"
DATABASE_URI_ENVS: Final[tuple[str, ...]] = ("ROOMSYNC_DATABASE_URI", "DATABASE_URI")
DATABASE_FILENAME: Final[str] = "roomsync.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory used when no database URI is configured."""

    data_dir: Path

    def resolve_data_dir(self, *, create: bool = False) -> Path:
        resolved = self.data_dir.expanduser().resolve()
        if create:
            resolved.mkdir(parents=True, exist_ok=True)
        return resolved

    def sqlite_uri(self) -> str:
        database = self.resolve_data_dir(create=True) / DATABASE_FILENAME
        return f"sqlite+pysqlite:///{database}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _xdg_data_home() -> Path:
    configured = os.getenv("XDG_DATA_HOME")
    return Path(configured) if configured else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    configured = os.getenv(DATA_DIR_ENV)
    return StorageConfig(data_dir=Path(configured) if configured else _xdg_data_home() / "roomsync")


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """Prefer an explicit URI from the environment, else a SQLite file in the data dir."""

    for name in DATABASE_URI_ENVS:
        uri = os.getenv(name)
        if uri:
            return DatabaseConfig(uri=uri)
    return DatabaseConfig(uri=(storage or get_storage_config()).sqlite_uri())
