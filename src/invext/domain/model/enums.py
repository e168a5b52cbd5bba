"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Discriminator for the inventory entities an extension can contribute."""

    MANUFACTURER = "manufacturer"
    CATEGORY = "category"
    DEVICE = "device"
