"""Where the mapping database lives.

``DATABASE_URI`` wins outright. Otherwise a SQLite file named by
``NOMISMAP_DB_FILENAME`` (default ``nomismap.db``) is placed in ``NOMISMAP_DATA_DIR``,
falling back to the platform's per-user data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "nomismap"
DEFAULT_DB_FILENAME: Final[str] = "nomismap.db"
DATA_DIR_ENV: Final[str] = "NOMISMAP_DATA_DIR"
DB_FILENAME_ENV: Final[str] = "NOMISMAP_DB_FILENAME"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, ensure: bool = True) -> Path:
        data_dir = self.resolve_data_dir()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    from_env: bool = False


def _platform_data_home() -> Path:
    if os.name == "nt":
        local_app_data = os.getenv("LOCALAPPDATA")
        return Path(local_app_data) if local_app_data else Path.home() / "AppData" / "Local"
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    return Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    configured_dir = optional_env_var(DATA_DIR_ENV)
    data_dir = Path(configured_dir) if configured_dir else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(
        data_dir=data_dir.expanduser().resolve(),
        database_filename=optional_env_var(DB_FILENAME_ENV) or DEFAULT_DB_FILENAME,
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    uri = optional_env_var(DATABASE_URI_ENV)
    if uri is not None:
        return DatabaseConfig(uri=uri, from_env=True)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())


def get_database_uri() -> str:
    return get_database_config().uri
