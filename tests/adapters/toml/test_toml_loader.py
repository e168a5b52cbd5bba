from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from invext.adapters.toml import extension_files, load_extension_directory, load_extension_file
from invext.domain.model import SemVer
from invext.domain.ports.source import ExtensionParseError
from tests.helpers.extensions import write_extension_file

if TYPE_CHECKING:
    from pathlib import Path


def test_load_extension_file(tmp_path: Path) -> None:
    path = write_extension_file(tmp_path, "acme", version="1.2.0")

    extension = load_extension_file(path)

    assert extension.id == "acme"
    assert extension.version == SemVer(1, 2, 0)
    assert extension.metadata.display_name == "Extension acme"
    assert [manufacturer.id for manufacturer in extension.manufacturers] == ["acme"]
    assert [category.id for category in extension.categories] == ["phone"]
    (device,) = extension.devices
    assert device.manufacturer == "acme"
    assert device.category == "phone"
    assert device.primary_model_identifiers == ["AP-1"]
    assert device.extended_model_identifiers == ["AP-1X", "AP-1Y"]
    assert all(entity.owners == {"acme"} for entity in extension.entities())


def test_optional_sections_default_to_empty(tmp_path: Path) -> None:
    path = tmp_path / "minimal.toml"
    path.write_text(
        'extension_id = "minimal"\n'
        'extension_display_name = "Minimal"\n'
        'extension_version = "0.1.0"\n'
        "devices = []\n"
    )

    extension = load_extension_file(path)

    assert extension.manufacturers == []
    assert extension.categories == []
    assert extension.devices == []


def test_invalid_toml_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("extension_id = \n")

    with pytest.raises(ExtensionParseError, match="invalid TOML") as excinfo:
        load_extension_file(path)

    assert excinfo.value.path == path


def test_missing_devices_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "no-devices.toml"
    path.write_text(
        'extension_id = "x"\nextension_display_name = "X"\nextension_version = "1.0.0"\n'
    )

    with pytest.raises(ExtensionParseError, match="devices"):
        load_extension_file(path)


def test_invalid_version_is_reported(tmp_path: Path) -> None:
    path = write_extension_file(tmp_path, "acme", version="1.0")

    with pytest.raises(ExtensionParseError, match="extension_version"):
        load_extension_file(path)


def test_directory_loading_skips_bad_files_and_other_entries(tmp_path: Path) -> None:
    write_extension_file(tmp_path, "beta")
    write_extension_file(tmp_path, "alpha")
    (tmp_path / "broken.toml").write_text("not = [valid")
    (tmp_path / "notes.txt").write_text("ignored")
    (tmp_path / "nested.toml").mkdir()

    result = load_extension_directory(tmp_path)

    assert [extension.id for extension in result.extensions] == ["alpha", "beta"]
    assert [failure.path.name for failure in result.failures] == ["broken.toml"]


def test_extension_files_are_sorted(tmp_path: Path) -> None:
    for name in ("b", "a", "c"):
        write_extension_file(tmp_path, name)

    assert [path.name for path in extension_files(tmp_path)] == ["a.toml", "b.toml", "c.toml"]
