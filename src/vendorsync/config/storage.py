"""Data storage configuration helpers."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "vendorsync"
DEFAULT_DB_FILENAME: Final[str] = "vendorsync.db"
CHECKPOINT_DIRNAME: Final[str] = "checkpoints"
AUDIT_DIRNAME: Final[str] = "audit"

_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    checkpoint_dirname: str = CHECKPOINT_DIRNAME
    audit_dirname: str = AUDIT_DIRNAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def checkpoint_dir(self, *, ensure: bool = True) -> Path:
        return self._subdir(self.checkpoint_dirname, ensure=ensure)

    def audit_dir(self, *, ensure: bool = True) -> Path:
        return self._subdir(self.audit_dirname, ensure=ensure)

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"

    def _subdir(self, name: str, *, ensure: bool) -> Path:
        path = self.resolve_data_dir() / name
        if ensure:
            path.mkdir(parents=True, exist_ok=True)
        return path


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def safe_filename(name: str) -> str:
    """Return ``name`` reduced to characters that are safe in file names."""

    cleaned = _UNSAFE_NAME.sub("_", name.strip())
    return cleaned or "source"


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("VENDORSYNC_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.database_uri())
