"""SQLAlchemy table metadata for the inventory store."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    Dialect,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    event,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class ExtensionIdSetType(TypeDecorator[set[str]]):
    """Owning-extension set persisted as a sorted JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: set[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(sorted(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> set[str]:
        _ = dialect
        if value is None:
            return set()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return set()
        items = cast(list[Any], loaded)
        return {item for item in items if isinstance(item, str)}


class StringListType(TypeDecorator[list[str]]):
    """Ordered list of strings persisted as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [str(item) for item in items]


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

extension_table = Table(
    "extension",
    metadata,
    Column("id", String, primary_key=True),
    Column("display_name", String, nullable=False),
    Column("version", String, nullable=False),
)

manufacturer_table = Table(
    "device_manufacturer",
    metadata,
    Column("id", String, primary_key=True),
    Column("display_name", String, nullable=False),
    Column("owners", ExtensionIdSetType(), nullable=False),
)

category_table = Table(
    "device_category",
    metadata,
    Column("id", String, primary_key=True),
    Column("display_name", String, nullable=False),
    Column("owners", ExtensionIdSetType(), nullable=False),
)

device_table = Table(
    "device",
    metadata,
    Column("id", String, primary_key=True),
    Column("display_name", String, nullable=False),
    Column(
        "manufacturer_id",
        String,
        ForeignKey("device_manufacturer.id", deferrable=True, initially="DEFERRED"),
        nullable=False,
    ),
    Column(
        "category_id",
        String,
        ForeignKey("device_category.id", deferrable=True, initially="DEFERRED"),
        nullable=False,
    ),
    Column("owners", ExtensionIdSetType(), nullable=False),
    Column("primary_model_identifiers", StringListType(), nullable=False),
    Column("extended_model_identifiers", StringListType(), nullable=False),
)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: object) -> None:  # noqa: ANN401
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


def enforce_foreign_keys(engine: Engine) -> None:
    """Make SQLite check the device -> manufacturer/category references."""

    if engine.dialect.name != "sqlite":
        return
    if not event.contains(engine, "connect", _enable_sqlite_foreign_keys):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
