"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from invext.adapters.sqlalchemy import SqlAlchemyInventoryStore, is_started, startup
from invext.adapters.toml import load_extension_directory
from invext.config import get_extensions_config
from invext.domain.extensions import ExtensionManager, LoadReport, ResolutionMode
from invext.domain.ports.source import ExtensionSourceError

if TYPE_CHECKING:
    from pathlib import Path

    from invext.domain.model import ExtensionId, ExtensionMetadata
    from invext.domain.ports.source import ExtensionSource
    from invext.domain.ports.store import InventoryStore


log = getLogger(__name__)


class UnknownExtensionError(LookupError):
    """Raised when unloading an extension that is not loaded."""

    def __init__(self, extension_id: ExtensionId) -> None:
        super().__init__(f"Extension '{extension_id}' is not loaded")
        self.extension_id = extension_id


def _default_store() -> InventoryStore:
    if not is_started():
        startup()
    return SqlAlchemyInventoryStore()


def load_extensions(
    *,
    mode: ResolutionMode = ResolutionMode.MANUAL,
    directory: Path | None = None,
    source: ExtensionSource | None = None,
    store: InventoryStore | None = None,
) -> LoadReport:
    """Read extensions from ``directory`` and reconcile them with the store.

    Files that failed to parse do not stop the others from loading; they are
    reported afterwards through ``ExtensionSourceError``.
    """

    effective_directory = get_extensions_config(directory=directory).resolve_directory()
    effective_source = source or load_extension_directory
    effective_store = store or _default_store()

    result = effective_source(effective_directory)
    manager = ExtensionManager.with_extensions(result.extensions, mode=mode)
    report = manager.load_extensions(effective_store)

    if result.failures:
        raise ExtensionSourceError(result.failures)
    return report


def unload_extension(extension_id: ExtensionId, *, store: InventoryStore | None = None) -> None:
    """Remove a loaded extension and the records only it owns."""

    effective_store = store or _default_store()
    loaded = {metadata.id for metadata in effective_store.list_extension_metadata()}
    if extension_id not in loaded:
        raise UnknownExtensionError(extension_id)
    ExtensionManager().unload_extension(effective_store, extension_id)


def list_extensions(*, store: InventoryStore | None = None) -> list[ExtensionMetadata]:
    effective_store = store or _default_store()
    return sorted(effective_store.list_extension_metadata(), key=lambda metadata: metadata.id)
