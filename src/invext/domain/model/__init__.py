"""Domain model for inventory extensions."""

from __future__ import annotations

from .enums import EntityKind
from .inventory import (
    Category,
    Device,
    Extension,
    ExtensionMetadata,
    InventoryEntity,
    Manufacturer,
)
from .primitives import (
    EntityId,
    EntityKey,
    ExtensionId,
    InvalidVersionError,
    ModelIdentifier,
    SemVer,
)

__all__ = [
    "Category",
    "Device",
    "EntityId",
    "EntityKey",
    "EntityKind",
    "Extension",
    "ExtensionId",
    "ExtensionMetadata",
    "InvalidVersionError",
    "InventoryEntity",
    "Manufacturer",
    "ModelIdentifier",
    "SemVer",
]
