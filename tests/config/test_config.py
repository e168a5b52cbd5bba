from __future__ import annotations

import logging
from pathlib import Path

import pytest

from invext.config import (
    ConfigurationError,
    MissingConfigurationError,
    configure_logging,
    get_database_config,
    get_extensions_config,
    get_storage_config,
    require_env_vars,
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "DATABASE_URI",
        "INVEXT_DATA_DIR",
        "INVEXT_DB_USER",
        "INVEXT_DB_PASSWORD",
        "INVEXT_EXTENSIONS_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRESENT", "value")
    monkeypatch.setenv("BLANK", "  ")

    assert require_env_vars(("PRESENT",)) == {"PRESENT": "value"}
    with pytest.raises(MissingConfigurationError, match="ABSENT, BLANK") as excinfo:
        require_env_vars(("PRESENT", "BLANK", "ABSENT"))
    assert excinfo.value.names == ("ABSENT", "BLANK")


def test_storage_config_uses_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("INVEXT_DATA_DIR", str(tmp_path / "data"))

    config = get_storage_config()

    assert config.database_path() == (tmp_path / "data" / "invext.db").resolve()
    assert (tmp_path / "data").is_dir()
    assert config.database_uri().startswith("sqlite+pysqlite:///")


def test_database_config_defaults_to_storage(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.setenv("INVEXT_DATA_DIR", str(tmp_path))

    config = get_database_config()

    assert config.uri == f"sqlite+pysqlite:///{(tmp_path / 'invext.db').resolve()}"
    assert config.username is None


def test_database_config_applies_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://db.example/inventory")
    monkeypatch.setenv("INVEXT_DB_USER", "inventory")
    monkeypatch.setenv("INVEXT_DB_PASSWORD", "p@ss")

    url = get_database_config().url()

    assert url.username == "inventory"
    assert url.password == "p@ss"
    assert url.host == "db.example"
    assert url.database == "inventory"


def test_database_credentials_come_in_pairs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("INVEXT_DB_USER", "inventory")

    with pytest.raises(MissingConfigurationError, match="INVEXT_DB_PASSWORD"):
        get_database_config()


def test_invalid_database_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "definitely not a url")

    with pytest.raises(ConfigurationError, match="Invalid database URI"):
        get_database_config().url()


def test_extensions_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    assert get_extensions_config().directory == Path("extensions")

    monkeypatch.setenv("INVEXT_EXTENSIONS_DIR", str(tmp_path))
    assert get_extensions_config().resolve_directory() == tmp_path.resolve()
    assert get_extensions_config(directory=Path("other")).directory == Path("other")


def test_configure_logging_to_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "invext.log"
    root = logging.getLogger()
    previous = root.handlers[:]
    previous_level = root.level

    try:
        configure_logging(level=logging.DEBUG, force=True, log_file=log_file)
        logging.getLogger("invext.test").debug("hello from the test")
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous
        root.setLevel(previous_level)

    assert "hello from the test" in log_file.read_text()
