"""``InventoryStore`` implementation on top of the SQLAlchemy unit of work."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from invext.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
from invext.domain.ports.store import StoreConnectionError, StoreWriteError

if TYPE_CHECKING:
    from invext.adapters.sqlalchemy.unit_of_work import InventoryRepositories
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

log = logging.getLogger(__name__)


class _SessionInventoryStore:
    """Store operations bound to the session of one open unit of work."""

    def __init__(self, repositories: InventoryRepositories) -> None:
        self._repositories = repositories

    @contextmanager
    def transaction(self) -> Iterator[_SessionInventoryStore]:
        yield self

    def list_extension_metadata(self) -> list[ExtensionMetadata]:
        return self._repositories.extensions.list_all()

    def create_extension_metadata(self, metadata: ExtensionMetadata) -> None:
        self._repositories.extensions.add(metadata)

    def delete_extension_metadata(self, extension_id: ExtensionId) -> None:
        if not self._repositories.extensions.delete(extension_id):
            log.warning("Extension '%s' was not loaded", extension_id)

    def create_manufacturer(self, manufacturer: Manufacturer) -> None:
        self._repositories.manufacturers.add(manufacturer)

    def create_category(self, category: Category) -> None:
        self._repositories.categories.add(category)

    def create_device(self, device: Device) -> None:
        self._repositories.devices.add(device)

    def get_by_id(self, kind: EntityKind, entity_id: EntityId) -> InventoryEntity | None:
        return self._repositories.for_kind(kind).get(entity_id)

    def list_entities(self, kind: EntityKind) -> list[InventoryEntity]:
        return self._repositories.for_kind(kind).list_all()

    def replace_entity(self, entity: InventoryEntity) -> None:
        if not self._repositories.for_kind(entity.kind).replace(entity):
            raise StoreWriteError(f"{entity.key} does not exist")

    def delete_by_id(self, kind: EntityKind, entity_id: EntityId) -> None:
        self._repositories.for_kind(kind).delete(entity_id)

    def delete_where_sole_owner(self, kind: EntityKind, extension_id: ExtensionId) -> int:
        return self._repositories.for_kind(kind).delete_sole_owned(extension_id)

    def remove_owner_everywhere(self, kind: EntityKind, extension_id: ExtensionId) -> int:
        return self._repositories.for_kind(kind).remove_owner(extension_id)


class SqlAlchemyInventoryStore:
    """Inventory store backed by the engine configured through ``startup()``.

    Standalone operations commit on their own. Transactions are serialised with a
    re-entrant lock since SQLite admits a single writer at a time.
    """

    def __init__(
        self,
        uow_factory: Callable[[], SqlAlchemyUnitOfWork] = SqlAlchemyUnitOfWork,
    ) -> None:
        self._uow_factory = uow_factory
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[_SessionInventoryStore]:
        with self._lock:
            try:
                with self._uow_factory() as uow:
                    yield _SessionInventoryStore(uow.repositories)
                    uow.commit()
            except IntegrityError as exc:
                raise StoreWriteError(f"Store rejected the write: {exc.orig}") from exc
            except OperationalError as exc:
                raise StoreConnectionError(f"Store operation failed: {exc.orig}") from exc
            except SQLAlchemyError as exc:
                raise StoreWriteError(f"Store operation failed: {exc}") from exc

    def list_extension_metadata(self) -> list[ExtensionMetadata]:
        with self.transaction() as tx:
            return tx.list_extension_metadata()

    def create_extension_metadata(self, metadata: ExtensionMetadata) -> None:
        with self.transaction() as tx:
            tx.create_extension_metadata(metadata)

    def delete_extension_metadata(self, extension_id: ExtensionId) -> None:
        with self.transaction() as tx:
            tx.delete_extension_metadata(extension_id)

    def create_manufacturer(self, manufacturer: Manufacturer) -> None:
        with self.transaction() as tx:
            tx.create_manufacturer(manufacturer)

    def create_category(self, category: Category) -> None:
        with self.transaction() as tx:
            tx.create_category(category)

    def create_device(self, device: Device) -> None:
        with self.transaction() as tx:
            tx.create_device(device)

    def get_by_id(self, kind: EntityKind, entity_id: EntityId) -> InventoryEntity | None:
        with self.transaction() as tx:
            return tx.get_by_id(kind, entity_id)

    def list_entities(self, kind: EntityKind) -> list[InventoryEntity]:
        with self.transaction() as tx:
            return tx.list_entities(kind)

    def replace_entity(self, entity: InventoryEntity) -> None:
        with self.transaction() as tx:
            tx.replace_entity(entity)

    def delete_by_id(self, kind: EntityKind, entity_id: EntityId) -> None:
        with self.transaction() as tx:
            tx.delete_by_id(kind, entity_id)

    def delete_where_sole_owner(self, kind: EntityKind, extension_id: ExtensionId) -> int:
        with self.transaction() as tx:
            return tx.delete_where_sole_owner(kind, extension_id)

    def remove_owner_everywhere(self, kind: EntityKind, extension_id: ExtensionId) -> int:
        with self.transaction() as tx:
            return tx.remove_owner_everywhere(kind, extension_id)


if TYPE_CHECKING:
    from invext.domain.ports.store import InventoryStore

    _store_check: InventoryStore = SqlAlchemyInventoryStore()
