"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from .env import any_env_var_set, require_env_vars
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "invext"
DEFAULT_DB_FILENAME: Final[str] = "invext.db"
CREDENTIAL_ENV_VARS: Final[tuple[str, str]] = ("INVEXT_DB_USER", "INVEXT_DB_PASSWORD")


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Where the inventory store lives and which credentials to present."""

    uri: str
    username: str | None = None
    password: str | None = None

    def url(self) -> URL:
        """Return the SQLAlchemy URL, with credentials applied when configured."""

        try:
            url = make_url(self.uri)
        except ArgumentError as exc:
            raise ConfigurationError(f"Invalid database URI: {exc}") from exc
        if self.username is None:
            return url
        return url.set(username=self.username, password=self.password)


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("INVEXT_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        uri = env_uri
    else:
        storage_config = storage or get_storage_config()
        uri = storage_config.database_uri()

    # credentials come as a pair; a lone user or password is a misconfiguration
    if not any_env_var_set(CREDENTIAL_ENV_VARS):
        return DatabaseConfig(uri=uri)
    values = require_env_vars(CREDENTIAL_ENV_VARS)
    return DatabaseConfig(
        uri=uri,
        username=values["INVEXT_DB_USER"],
        password=values["INVEXT_DB_PASSWORD"],
    )
