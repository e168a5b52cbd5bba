from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from invext.adapters.sqlalchemy import (
    BUILTIN_EXTENSION_ID,
    SqlAlchemyInventoryStore,
    build_engine,
    shutdown,
    startup,
)
from tests.helpers.store import InMemoryInventoryStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from invext.domain.ports.store import InventoryStore


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine: Engine) -> Iterator[SqlAlchemyInventoryStore]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyInventoryStore()
    finally:
        shutdown()


@pytest.fixture
def memory_store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore(protected={BUILTIN_EXTENSION_ID})


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest) -> InventoryStore:
    """Every store implementation the extension manager runs against."""

    fixture_name = "memory_store" if request.param == "memory" else "sqlite_store"
    return request.getfixturevalue(fixture_name)
