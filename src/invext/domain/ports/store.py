"""Port for the persistent inventory store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from invext.domain.model import (
        Category,
        Device,
        EntityId,
        EntityKind,
        ExtensionId,
        ExtensionMetadata,
        InventoryEntity,
        Manufacturer,
    )


class StoreError(RuntimeError):
    """Base class for failures reported by an inventory store."""


class StoreConnectionError(StoreError):
    """Raised when the store cannot be reached."""


class StoreSelectionError(StoreError):
    """Raised when the configured database cannot be selected."""


class StoreAuthenticationError(StoreError):
    """Raised when the store rejects the configured credentials."""


class SchemaSetupError(StoreError):
    """Raised when the store schema cannot be created or upgraded."""


class StoreWriteError(StoreError):
    """Raised when a write is rejected by the store."""


class DuplicateRecordError(StoreWriteError):
    """Raised when a record with the same primary key already exists."""


class ProtectedRecordError(StoreError):
    """Raised when deleting a reserved (builtin) record."""

    def __init__(self, record: str) -> None:
        super().__init__(f"{record} is reserved and cannot be removed")
        self.record = record


@runtime_checkable
class InventoryStore(Protocol):
    """Record CRUD plus ownership-aware bulk operations.

    Every operation runs in its own transaction unless it is issued through the
    store yielded by ``transaction()``.
    """

    def transaction(self) -> AbstractContextManager[InventoryStore]: ...

    def list_extension_metadata(self) -> list[ExtensionMetadata]: ...

    def create_extension_metadata(self, metadata: ExtensionMetadata) -> None: ...

    def delete_extension_metadata(self, extension_id: ExtensionId) -> None: ...

    def create_manufacturer(self, manufacturer: Manufacturer) -> None: ...

    def create_category(self, category: Category) -> None: ...

    def create_device(self, device: Device) -> None: ...

    def get_by_id(self, kind: EntityKind, entity_id: EntityId) -> InventoryEntity | None: ...

    def list_entities(self, kind: EntityKind) -> list[InventoryEntity]: ...

    def replace_entity(self, entity: InventoryEntity) -> None: ...

    def delete_by_id(self, kind: EntityKind, entity_id: EntityId) -> None: ...

    def delete_where_sole_owner(self, kind: EntityKind, extension_id: ExtensionId) -> int: ...

    def remove_owner_everywhere(self, kind: EntityKind, extension_id: ExtensionId) -> int: ...
