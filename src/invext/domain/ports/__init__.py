"""Domain port definitions for adapters."""

from __future__ import annotations

from .source import ExtensionParseError, ExtensionSource, ExtensionSourceError, SourceLoadResult
from .store import (
    DuplicateRecordError,
    InventoryStore,
    ProtectedRecordError,
    SchemaSetupError,
    StoreAuthenticationError,
    StoreConnectionError,
    StoreError,
    StoreSelectionError,
    StoreWriteError,
)

__all__ = [
    "DuplicateRecordError",
    "ExtensionParseError",
    "ExtensionSource",
    "ExtensionSourceError",
    "InventoryStore",
    "ProtectedRecordError",
    "SchemaSetupError",
    "SourceLoadResult",
    "StoreAuthenticationError",
    "StoreConnectionError",
    "StoreError",
    "StoreSelectionError",
    "StoreWriteError",
]
