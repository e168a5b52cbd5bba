"""Read extension descriptors from TOML files on disk."""

from __future__ import annotations

import tomllib
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from invext.domain.ports.source import ExtensionParseError, SourceLoadResult

from .schema import ExtensionDocument
from .translator import to_extension

if TYPE_CHECKING:
    from pathlib import Path

    from invext.domain.model import Extension

log = getLogger(__name__)

EXTENSION_SUFFIX = ".toml"


def _describe_validation_error(exc: ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in exc.errors()
    ]
    return "; ".join(problems)


def load_extension_file(path: Path) -> Extension:
    """Parse one extension file.

    Raises ``ExtensionParseError`` naming the file when it cannot be read, is not
    valid TOML or does not match the extension format.
    """

    try:
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    except OSError as exc:
        raise ExtensionParseError(path, f"cannot read file: {exc.strerror or exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ExtensionParseError(path, f"invalid TOML: {exc}") from exc

    try:
        document = ExtensionDocument.model_validate(raw)
    except ValidationError as exc:
        raise ExtensionParseError(path, _describe_validation_error(exc)) from exc

    extension = to_extension(document)
    log.debug(
        "Parsed extension '%s' %s from %s (%s manufacturers, %s categories, %s devices)",
        extension.id,
        extension.version,
        path,
        len(extension.manufacturers),
        len(extension.categories),
        len(extension.devices),
    )
    return extension


def extension_files(directory: Path) -> list[Path]:
    """Regular ``*.toml`` files directly inside ``directory``, in name order."""

    return sorted(
        path
        for path in directory.iterdir()
        if path.suffix == EXTENSION_SUFFIX and path.is_file()
    )


def load_extension_directory(directory: Path) -> SourceLoadResult:
    """Parse every extension file in ``directory``.

    A file that fails to parse is logged and recorded in ``failures``; the other
    files are still read.
    """

    log.info("Reading extensions from %s", directory)
    result = SourceLoadResult()
    for path in extension_files(directory):
        try:
            result.extensions.append(load_extension_file(path))
        except ExtensionParseError as exc:
            log.error("Skipping extension file %s: %s", exc.path, exc.reason)  # noqa: TRY400
            result.failures.append(exc)
    log.info(
        "Read %s extension(s), %s file(s) failed to parse",
        len(result.extensions),
        len(result.failures),
    )
    return result
