"""Translate parsed extension documents into domain extensions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from invext.domain.model import (
    Category,
    Device,
    Extension,
    ExtensionMetadata,
    Manufacturer,
    SemVer,
)

if TYPE_CHECKING:
    from .schema import ExtensionDocument


def to_extension(document: ExtensionDocument) -> Extension:
    """Build the extension; every contributed entity is owned by the extension alone."""

    extension_id = document.extension_id
    metadata = ExtensionMetadata(
        id=extension_id,
        display_name=document.extension_display_name,
        version=SemVer.parse(document.extension_version),
    )
    return Extension(
        metadata=metadata,
        manufacturers=[
            Manufacturer(id=entry.id, display_name=entry.display_name, owners={extension_id})
            for entry in document.device_manufacturers
        ],
        categories=[
            Category(id=entry.id, display_name=entry.display_name, owners={extension_id})
            for entry in document.device_categories
        ],
        devices=[
            Device(
                id=entry.id,
                display_name=entry.display_name,
                owners={extension_id},
                manufacturer=entry.manufacturer,
                category=entry.category,
                primary_model_identifiers=list(entry.primary_model_identifiers),
                extended_model_identifiers=list(entry.extended_model_identifiers),
            )
            for entry in document.devices
        ],
    )
