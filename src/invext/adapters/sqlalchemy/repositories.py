"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqlalchemy import delete, select, update

from invext.adapters.sqlalchemy.mappings import (
    category_table,
    device_table,
    extension_table,
    manufacturer_table,
)
from invext.adapters.sqlalchemy.reserved import (
    BUILTIN_EXTENSION_ID,
    RESERVED_ENTITY_IDS,
    is_reserved,
)
from invext.domain.model import (
    Category,
    Device,
    EntityKind,
    ExtensionMetadata,
    InventoryEntity,
    Manufacturer,
    SemVer,
)
from invext.domain.ports.store import DuplicateRecordError, ProtectedRecordError

if TYPE_CHECKING:
    from sqlalchemy import Row, Table
    from sqlalchemy.orm import Session

    from invext.domain.model import EntityId, ExtensionId


class SqlAlchemyExtensionRepository:
    """Persist metadata of loaded extensions."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, extension_id: ExtensionId) -> ExtensionMetadata | None:
        stmt = select(extension_table).where(extension_table.c.id == extension_id)
        row = self.session.execute(stmt).one_or_none()
        return None if row is None else self._from_row(row)

    def list_all(self) -> list[ExtensionMetadata]:
        stmt = select(extension_table).order_by(extension_table.c.id)
        return [self._from_row(row) for row in self.session.execute(stmt)]

    def add(self, metadata: ExtensionMetadata) -> None:
        if self.get(metadata.id) is not None:
            raise DuplicateRecordError(f"extension '{metadata.id}' already exists")
        self.session.execute(
            extension_table.insert().values(
                id=metadata.id,
                display_name=metadata.display_name,
                version=str(metadata.version),
            )
        )

    def delete(self, extension_id: ExtensionId) -> bool:
        if extension_id == BUILTIN_EXTENSION_ID:
            raise ProtectedRecordError(f"extension '{extension_id}'")
        result = self.session.execute(
            delete(extension_table).where(extension_table.c.id == extension_id)
        )
        return result.rowcount > 0

    @staticmethod
    def _from_row(row: Row[Any]) -> ExtensionMetadata:
        return ExtensionMetadata(
            id=row.id,
            display_name=row.display_name,
            version=SemVer.parse(row.version),
        )


TEntity = TypeVar("TEntity", bound=InventoryEntity)


class SqlAlchemyEntityRepository(ABC, Generic[TEntity]):
    """Shared queries for the extension-owned entity tables."""

    table: ClassVar[Table]
    kind: ClassVar[EntityKind]

    def __init__(self, session: Session) -> None:
        self.session = session

    @abstractmethod
    def _from_row(self, row: Row[Any]) -> TEntity: ...

    @abstractmethod
    def _to_values(self, entity: TEntity) -> dict[str, object]: ...

    def get(self, entity_id: EntityId) -> TEntity | None:
        stmt = select(self.table).where(self.table.c.id == entity_id)
        row = self.session.execute(stmt).one_or_none()
        return None if row is None else self._from_row(row)

    def list_all(self) -> list[TEntity]:
        stmt = select(self.table).order_by(self.table.c.id)
        return [self._from_row(row) for row in self.session.execute(stmt)]

    def add(self, entity: TEntity) -> None:
        if self.get(entity.id) is not None:
            raise DuplicateRecordError(f"{entity.key} already exists")
        self.session.execute(self.table.insert().values(self._to_values(entity)))

    def replace(self, entity: TEntity) -> bool:
        """Overwrite every column of an existing record in place."""

        values = self._to_values(entity)
        del values["id"]
        result = self.session.execute(
            update(self.table).where(self.table.c.id == entity.id).values(values)
        )
        return result.rowcount > 0

    def delete(self, entity_id: EntityId) -> bool:
        if is_reserved(self.kind, entity_id):
            raise ProtectedRecordError(f"{self.kind} '{entity_id}'")
        result = self.session.execute(delete(self.table).where(self.table.c.id == entity_id))
        return result.rowcount > 0

    def delete_sole_owned(self, extension_id: ExtensionId) -> int:
        """Delete the records owned by nobody but ``extension_id``."""

        # owner sets serialise deterministically, so equality on the column is exact
        stmt = (
            delete(self.table)
            .where(self.table.c.owners == {extension_id})
            .where(self.table.c.id.not_in(RESERVED_ENTITY_IDS[self.kind]))
        )
        return self.session.execute(stmt).rowcount

    def remove_owner(self, extension_id: ExtensionId) -> int:
        """Drop ``extension_id`` from every owner set that contains it.

        Records left without any owner are deleted.
        """

        touched = 0
        rows = self.session.execute(select(self.table.c.id, self.table.c.owners)).all()
        for entity_id, owners in rows:
            if extension_id not in owners:
                continue
            remaining: set[str] = owners - {extension_id}
            if remaining:
                self.session.execute(
                    update(self.table)
                    .where(self.table.c.id == entity_id)
                    .values(owners=remaining)
                )
            else:
                self.delete(entity_id)
            touched += 1
        return touched


class SqlAlchemyManufacturerRepository(SqlAlchemyEntityRepository[Manufacturer]):
    table = manufacturer_table
    kind = EntityKind.MANUFACTURER

    def _from_row(self, row: Row[Any]) -> Manufacturer:
        return Manufacturer(id=row.id, display_name=row.display_name, owners=row.owners)

    def _to_values(self, entity: Manufacturer) -> dict[str, object]:
        return {"id": entity.id, "display_name": entity.display_name, "owners": entity.owners}


class SqlAlchemyCategoryRepository(SqlAlchemyEntityRepository[Category]):
    table = category_table
    kind = EntityKind.CATEGORY

    def _from_row(self, row: Row[Any]) -> Category:
        return Category(id=row.id, display_name=row.display_name, owners=row.owners)

    def _to_values(self, entity: Category) -> dict[str, object]:
        return {"id": entity.id, "display_name": entity.display_name, "owners": entity.owners}


class SqlAlchemyDeviceRepository(SqlAlchemyEntityRepository[Device]):
    table = device_table
    kind = EntityKind.DEVICE

    def _from_row(self, row: Row[Any]) -> Device:
        return Device(
            id=row.id,
            display_name=row.display_name,
            owners=row.owners,
            manufacturer=row.manufacturer_id,
            category=row.category_id,
            primary_model_identifiers=row.primary_model_identifiers,
            extended_model_identifiers=row.extended_model_identifiers,
        )

    def _to_values(self, entity: Device) -> dict[str, object]:
        return {
            "id": entity.id,
            "display_name": entity.display_name,
            "owners": entity.owners,
            "manufacturer_id": entity.manufacturer,
            "category_id": entity.category,
            "primary_model_identifiers": entity.primary_model_identifiers,
            "extended_model_identifiers": entity.extended_model_identifiers,
        }
