"""Where Legatia keeps its database.

``DATABASE_URI`` wins when set (any SQLAlchemy URL, e.g. a shared Postgres for several
CLI users). Otherwise the family tree lives in a SQLite file under the data directory:
``LEGATIA_DATA_DIR`` if given, else ``$XDG_DATA_HOME/legatia`` (``~/.local/share``) or,
on Windows, ``%LOCALAPPDATA%\\legatia``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, Literal

from sqlalchemy.engine import make_url

if TYPE_CHECKING:
    from collections.abc import Mapping

APP_DIR_NAME: Final[str] = "legatia"
DEFAULT_DB_FILENAME: Final[str] = "family-tree.db"

type DatabaseSource = Literal["DATABASE_URI", "data-dir"]


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self, *, ensure: bool = True) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    source: DatabaseSource

    @property
    def display_uri(self) -> str:
        """The URI with any password masked, for logs and error messages."""

        return make_url(self.uri).render_as_string(hide_password=True)


def default_data_dir(
    *, platform: str = os.name, environ: Mapping[str, str] = os.environ
) -> Path:
    if platform == "nt":
        base = environ.get("LOCALAPPDATA")
        base_path = Path(base) if base else Path.home() / "AppData" / "Local"
    else:
        base = environ.get("XDG_DATA_HOME")
        base_path = Path(base) if base else Path.home() / ".local" / "share"
    return base_path / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("LEGATIA_DATA_DIR", "").strip()
    return StorageConfig(data_dir=Path(env_dir) if env_dir else default_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    env_uri = os.getenv("DATABASE_URI", "").strip()
    if env_uri:
        return DatabaseConfig(uri=env_uri, source="DATABASE_URI")
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.database_uri(), source="data-dir")


def get_database_uri() -> str:
    return get_database_config().uri
