"""Extension source configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DEFAULT_EXTENSIONS_DIR: Final[Path] = Path("extensions")


@dataclass(frozen=True, slots=True)
class ExtensionsConfig:
    directory: Path = DEFAULT_EXTENSIONS_DIR

    def resolve_directory(self) -> Path:
        return self.directory.expanduser().resolve()


def get_extensions_config(*, directory: Path | None = None) -> ExtensionsConfig:
    if directory is not None:
        return ExtensionsConfig(directory=directory)
    env_dir = os.getenv("INVEXT_EXTENSIONS_DIR")
    return ExtensionsConfig(directory=Path(env_dir) if env_dir else DEFAULT_EXTENSIONS_DIR)
