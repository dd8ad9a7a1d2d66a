from __future__ import annotations

import os
from pathlib import Path

import pytest

from vendorsync.config import (
    MissingConfigurationError,
    StorageConfig,
    get_database_config,
    get_storage_config,
    require_env_vars,
)
from vendorsync.config.storage import safe_filename


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRESENT_VAR", "x")
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["PRESENT_VAR", "MISSING_VAR"])

    assert "MISSING_VAR" in str(exc.value)
    assert "PRESENT_VAR" not in str(exc.value)


def test_require_env_vars_treats_blank_as_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_vars(["EXAMPLE_VAR"])


def test_storage_config_uses_env_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("VENDORSYNC_DATA_DIR", str(tmp_path / "data"))

    storage = get_storage_config()

    assert storage.resolve_data_dir() == (tmp_path / "data").resolve()
    assert storage.checkpoint_dir().is_dir()
    assert storage.audit_dir().parent == storage.resolve_data_dir()


def test_database_config_prefers_env_uri(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://example/db")

    assert get_database_config().uri == "postgresql+psycopg://example/db"

    monkeypatch.delenv("DATABASE_URI")
    storage = StorageConfig(data_dir=tmp_path)
    uri = get_database_config(storage=storage).uri

    assert uri.startswith("sqlite+pysqlite:///")
    assert uri.endswith(os.sep + "vendorsync.db")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("turn14", "turn14"),
        ("rough country/us", "rough_country_us"),
        ("  ", "source"),
    ],
)
def test_safe_filename(name: str, expected: str) -> None:
    assert safe_filename(name) == expected
