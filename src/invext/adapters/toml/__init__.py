"""Public interface for the TOML extension source."""

from __future__ import annotations

from .loader import extension_files, load_extension_directory, load_extension_file
from .schema import ExtensionDocument
from .translator import to_extension

__all__ = [
    "ExtensionDocument",
    "extension_files",
    "load_extension_directory",
    "load_extension_file",
    "to_extension",
]
