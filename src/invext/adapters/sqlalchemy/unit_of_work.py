"""SQLAlchemy engine lifecycle and unit of work for the inventory store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Literal

from alembic.util import CommandError
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from invext.adapters.sqlalchemy.mappings import enforce_foreign_keys
from invext.adapters.sqlalchemy.migrations import upgrade_head
from invext.adapters.sqlalchemy.repositories import (
    SqlAlchemyCategoryRepository,
    SqlAlchemyDeviceRepository,
    SqlAlchemyEntityRepository,
    SqlAlchemyExtensionRepository,
    SqlAlchemyManufacturerRepository,
)
from invext.adapters.sqlalchemy.reserved import (
    BUILTIN_EXTENSION,
    BUILTIN_EXTENSION_ID,
    reserved_category,
    reserved_manufacturer,
)
from invext.config import ConfigurationError, get_database_config
from invext.domain.model import EntityKind
from invext.domain.ports.store import (
    SchemaSetupError,
    StoreAuthenticationError,
    StoreConnectionError,
    StoreError,
    StoreSelectionError,
)

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

# lower-cased fragments of driver messages, checked in order
_AUTHENTICATION_MARKERS: Final[tuple[str, ...]] = (
    "authentication failed",
    "password",
    "access denied",
    "not authorized",
)
_SELECTION_MARKERS: Final[tuple[str, ...]] = (
    "unknown database",
    "does not exist",
)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call invext.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def _resolve_url(database_uri: str | URL | None) -> URL:
    if database_uri is None:
        config = get_database_config()
        try:
            return config.url()
        except ConfigurationError as exc:
            raise StoreSelectionError(str(exc)) from exc
    try:
        return make_url(database_uri)
    except ArgumentError as exc:
        raise StoreSelectionError(f"Invalid database URI: {exc}") from exc


def _is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def build_engine(database_uri: str | URL | None = None) -> Engine:
    """Create an engine for ``database_uri`` (or the configured database).

    In-memory SQLite databases are shared by every thread through one connection.
    """

    url = _resolve_url(database_uri)
    try:
        if _is_memory_sqlite(url):
            return create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        return create_engine(url)
    except (ArgumentError, NoSuchModuleError, ImportError) as exc:
        raise StoreSelectionError(
            f"Cannot select database backend '{url.drivername}': {exc}"
        ) from exc


def _classify_connect_failure(exc: OperationalError) -> StoreError:
    message = str(exc.orig if exc.orig is not None else exc).lower()
    if any(marker in message for marker in _AUTHENTICATION_MARKERS):
        return StoreAuthenticationError(f"Database rejected the credentials: {exc.orig}")
    if any(marker in message for marker in _SELECTION_MARKERS):
        return StoreSelectionError(f"Database could not be selected: {exc.orig}")
    return StoreConnectionError(f"Could not connect to the database: {exc.orig}")


def _verify_connection(engine: Engine) -> None:
    try:
        with engine.connect():
            pass
    except OperationalError as exc:
        raise _classify_connect_failure(exc) from exc
    except SQLAlchemyError as exc:
        raise StoreConnectionError(f"Could not connect to the database: {exc}") from exc


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | URL | None = None,
    force: bool = False,
) -> None:
    """Initialise the engine, upgrade the schema and create the reserved records.

    Failures are reported through the ``StoreError`` hierarchy.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or build_engine(database_uri)
    enforce_foreign_keys(resolved_engine)
    _verify_connection(resolved_engine)

    try:
        upgrade_head(engine=resolved_engine)
    except (SQLAlchemyError, CommandError) as exc:
        log.exception("Schema upgrade failed")
        raise SchemaSetupError(f"Could not set up the inventory schema: {exc}") from exc

    _STATE.engine = resolved_engine
    try:
        setup_reserved_items()
    except SQLAlchemyError as exc:
        _STATE.engine = None
        raise SchemaSetupError(f"Could not create the reserved records: {exc}") from exc
    log.info("Inventory store ready (%s)", resolved_engine.url.render_as_string())


def setup_reserved_items() -> None:
    """Create the builtin extension and its placeholder records when absent."""

    with SqlAlchemyUnitOfWork() as uow:
        repositories = uow.repositories
        if repositories.extensions.get(BUILTIN_EXTENSION_ID) is None:
            repositories.extensions.add(BUILTIN_EXTENSION)
        for entity in (reserved_manufacturer(), reserved_category()):
            repository = repositories.for_kind(entity.kind)
            existing = repository.get(entity.id)
            if existing is None:
                repository.add(entity)
            elif BUILTIN_EXTENSION_ID not in existing.owners:
                repository.replace(existing.merged_with(entity))
        uow.commit()


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


@dataclass(slots=True)
class InventoryRepositories:
    extensions: SqlAlchemyExtensionRepository
    manufacturers: SqlAlchemyManufacturerRepository
    categories: SqlAlchemyCategoryRepository
    devices: SqlAlchemyDeviceRepository

    def for_kind(self, kind: EntityKind) -> SqlAlchemyEntityRepository[Any]:
        match kind:
            case EntityKind.MANUFACTURER:
                return self.manufacturers
            case EntityKind.CATEGORY:
                return self.categories
            case EntityKind.DEVICE:
                return self.devices


class SqlAlchemyUnitOfWork:
    """Unit of work managing one SQLAlchemy session and its repositories."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: InventoryRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._repositories = InventoryRepositories(
            extensions=SqlAlchemyExtensionRepository(self._session),
            manufacturers=SqlAlchemyManufacturerRepository(self._session),
            categories=SqlAlchemyCategoryRepository(self._session),
            devices=SqlAlchemyDeviceRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self._session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> InventoryRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session
