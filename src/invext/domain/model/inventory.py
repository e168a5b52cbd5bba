"""
Inventory building blocks:
extension metadata, extension-owned entities and their ownership semantics.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, ClassVar, Self

from invext.domain.model.enums import EntityKind
from invext.domain.model.primitives import EntityKey

if TYPE_CHECKING:
    from invext.domain.model.primitives import (
        EntityId,
        ExtensionId,
        ModelIdentifier,
        SemVer,
    )


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtensionMetadata:
    """Identity of an extension, without its contents.

    Used to compare staged extensions with the ones already loaded in the store.
    """

    id: ExtensionId
    display_name: str
    version: SemVer


@dataclass(kw_only=True)
class InventoryEntity:
    """An entity asserted by one or more extensions."""

    id: EntityId
    display_name: str
    owners: set[ExtensionId]

    # class-level discriminator; subclasses must override
    KIND: ClassVar[EntityKind]

    def __post_init__(self) -> None:
        if not self.owners:
            raise ValueError(f"{self.KIND} {self.id!r} must have at least one owning extension")
        self.owners = set(self.owners)

    @property
    def kind(self) -> EntityKind:
        return self.KIND

    @property
    def key(self) -> EntityKey:
        return EntityKey(self.KIND, self.id)

    def is_solely_owned_by(self, extension_id: ExtensionId) -> bool:
        return self.owners == {extension_id}

    def merged_with(self, existing: Self) -> Self:
        """Return a copy of this entity that also keeps the owners of ``existing``.

        Every other field is taken from ``self``.
        """
        if existing.key != self.key:
            raise ValueError(f"cannot merge {existing.key} into {self.key}")
        return replace(self, owners=self.owners | existing.owners)

    def without_owner(self, extension_id: ExtensionId) -> Self:
        return replace(self, owners=self.owners - {extension_id})


@dataclass(kw_only=True)
class Manufacturer(InventoryEntity):
    KIND: ClassVar[EntityKind] = EntityKind.MANUFACTURER


@dataclass(kw_only=True)
class Category(InventoryEntity):
    """A category of device, such as a phone, tablet, or gaming console."""

    KIND: ClassVar[EntityKind] = EntityKind.CATEGORY


@dataclass(kw_only=True)
class Device(InventoryEntity):
    """A device and its make, category and model identifiers."""

    KIND: ClassVar[EntityKind] = EntityKind.DEVICE

    manufacturer: EntityId
    category: EntityId
    primary_model_identifiers: list[ModelIdentifier] = field(default_factory=list["ModelIdentifier"])
    extended_model_identifiers: list[ModelIdentifier] = field(
        default_factory=list["ModelIdentifier"]
    )


@dataclass(kw_only=True)
class Extension:
    """A versioned package of reference data, as handed over by a source loader."""

    metadata: ExtensionMetadata
    manufacturers: list[Manufacturer] = field(default_factory=list["Manufacturer"])
    categories: list[Category] = field(default_factory=list["Category"])
    devices: list[Device] = field(default_factory=list["Device"])

    @property
    def id(self) -> ExtensionId:
        return self.metadata.id

    @property
    def version(self) -> SemVer:
        return self.metadata.version

    def entities(self) -> tuple[InventoryEntity, ...]:
        return (*self.manufacturers, *self.categories, *self.devices)
