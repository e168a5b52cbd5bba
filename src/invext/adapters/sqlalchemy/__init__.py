"""SQLAlchemy adapter package for the inventory store."""

from __future__ import annotations

from .mappings import (
    category_table,
    device_table,
    extension_table,
    manufacturer_table,
    metadata,
)
from .reserved import BUILTIN_EXTENSION_ID, UNKNOWN_CATEGORY_ID, UNKNOWN_MANUFACTURER_ID
from .store import SqlAlchemyInventoryStore
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "BUILTIN_EXTENSION_ID",
    "UNKNOWN_CATEGORY_ID",
    "UNKNOWN_MANUFACTURER_ID",
    "SqlAlchemyInventoryStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "build_engine",
    "category_table",
    "configured_engine",
    "device_table",
    "extension_table",
    "is_started",
    "manufacturer_table",
    "metadata",
    "shutdown",
    "startup",
]
