"""Records every inventory carries regardless of which extensions are loaded."""

from __future__ import annotations

from typing import Final

from invext.domain.model import (
    Category,
    EntityKind,
    ExtensionMetadata,
    Manufacturer,
    SemVer,
)

BUILTIN_EXTENSION_ID: Final[str] = "builtin"
UNKNOWN_MANUFACTURER_ID: Final[str] = "unknown"
UNKNOWN_CATEGORY_ID: Final[str] = "unknown"

BUILTIN_EXTENSION: Final[ExtensionMetadata] = ExtensionMetadata(
    id=BUILTIN_EXTENSION_ID,
    display_name="Builtin",
    version=SemVer(0, 0, 0),
)

RESERVED_ENTITY_IDS: Final[dict[EntityKind, frozenset[str]]] = {
    EntityKind.MANUFACTURER: frozenset({UNKNOWN_MANUFACTURER_ID}),
    EntityKind.CATEGORY: frozenset({UNKNOWN_CATEGORY_ID}),
    EntityKind.DEVICE: frozenset(),
}


def reserved_manufacturer() -> Manufacturer:
    return Manufacturer(
        id=UNKNOWN_MANUFACTURER_ID,
        display_name="Unknown",
        owners={BUILTIN_EXTENSION_ID},
    )


def reserved_category() -> Category:
    return Category(
        id=UNKNOWN_CATEGORY_ID,
        display_name="Unknown",
        owners={BUILTIN_EXTENSION_ID},
    )


def is_reserved(kind: EntityKind, entity_id: str) -> bool:
    return entity_id in RESERVED_ENTITY_IDS[kind]
