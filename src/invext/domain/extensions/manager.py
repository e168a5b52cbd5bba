"""Staging, conflict handling and loading of inventory extensions."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from invext.domain.model import EntityKind

from .conflicts import LoadConflict
from .merge import EntityMerger
from .policy import Decision, ResolutionMode, decide, log_conflict
from .report import LoadReport, UnresolvedConflictsError
from .staging import StageConflict, StagingSet

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from invext.domain.model import Extension, ExtensionId, InventoryEntity
    from invext.domain.ports.store import InventoryStore

log = getLogger(__name__)

# Devices reference manufacturers and categories, so they are removed first.
_UNLOAD_ORDER = (EntityKind.DEVICE, EntityKind.CATEGORY, EntityKind.MANUFACTURER)


class ExtensionManager:
    """Reconciles staged extensions with the extensions loaded in a store."""

    def __init__(
        self,
        *,
        mode: ResolutionMode = ResolutionMode.MANUAL,
        merger: EntityMerger | None = None,
    ) -> None:
        self.mode = mode
        self._staging = StagingSet()
        self._merger = merger or EntityMerger()
        self._stage_conflicts: list[StageConflict] = []

    @classmethod
    def with_extensions(
        cls,
        extensions: Iterable[Extension],
        *,
        mode: ResolutionMode = ResolutionMode.MANUAL,
        merger: EntityMerger | None = None,
    ) -> ExtensionManager:
        manager = cls(mode=mode, merger=merger)
        for extension in extensions:
            manager.stage(extension)
        return manager

    @property
    def staged(self) -> StagingSet:
        return self._staging

    def stage(self, extension: Extension) -> StageConflict | None:
        conflict = self._staging.stage(extension)
        if conflict is not None:
            self._stage_conflicts.append(conflict)
        return conflict

    def load_extensions(self, store: InventoryStore) -> LoadReport:
        """Load every staged extension into ``store``, resolving conflicts per mode.

        Staged extensions are consumed. Raises ``UnresolvedConflictsError`` once all
        of them have been processed if any conflict was deferred to an operator.
        """

        log.info("Loading staged inventory extensions (%s mode)...", self.mode)
        report = LoadReport(stage_conflicts=list(self._stage_conflicts))
        self._stage_conflicts.clear()
        loaded = store.list_extension_metadata()

        for extension in self._staging.drain():
            conflict = LoadConflict.classify(extension, loaded)
            if conflict is not None:
                report.conflicts.append(conflict)
                log_conflict(conflict, self.mode)

            decision = decide(self.mode, conflict)
            self._apply(store, extension, decision, report)

        if report.deferred:
            log.error("Please resolve extension conflicts before loading again.")
            raise UnresolvedConflictsError(report)

        log.info(
            "All staged extensions processed: loaded=%s, reloaded=%s, skipped=%s",
            len(report.loaded),
            len(report.reloaded),
            len(report.skipped),
        )
        return report

    def _apply(
        self,
        store: InventoryStore,
        extension: Extension,
        decision: Decision,
        report: LoadReport,
    ) -> None:
        match decision:
            case Decision.LOAD:
                log.info("Loading extension '%s'...", extension.id)
                self.load_extension(store, extension)
                log.info("Successfully loaded extension '%s'.", extension.id)
                report.loaded.append(extension.id)
            case Decision.RELOAD:
                log.info("Reloading extension '%s'...", extension.id)
                self.reload_extension(store, extension)
                log.info("Successfully reloaded extension '%s'.", extension.id)
                report.reloaded.append(extension.id)
            case Decision.SKIP:
                report.skipped.append(extension.id)
            case Decision.DEFER:
                report.deferred.append(extension.id)

    def load_extension(self, store: InventoryStore, extension: Extension) -> None:
        """Write ``extension`` and its contents to ``store``.

        A failure part-way leaves whatever was already written in place.
        """

        store.create_extension_metadata(extension.metadata)
        asyncio.run(self._upsert_contents(store, extension))

    async def _upsert_contents(self, store: InventoryStore, extension: Extension) -> None:
        # Devices may only be written once their manufacturers and categories exist.
        await asyncio.gather(
            self._upsert_all(store, extension.manufacturers),
            self._upsert_all(store, extension.categories),
        )
        await self._upsert_all(store, extension.devices)

    async def _upsert_all(
        self,
        store: InventoryStore,
        entities: Sequence[InventoryEntity],
    ) -> None:
        await asyncio.gather(
            *(asyncio.to_thread(self._merger.upsert, store, entity) for entity in entities)
        )

    def unload_extension(self, store: InventoryStore, extension_id: ExtensionId) -> None:
        """Remove an extension and everything only it owns, in one transaction.

        Entities shared with other extensions stay, minus this owner. Reserved
        extensions are rejected by the store and nothing is changed.
        """

        with store.transaction() as tx:
            self._unload(tx, extension_id)
        log.info("Unloaded extension '%s'.", extension_id)

    def _unload(self, tx: InventoryStore, extension_id: ExtensionId) -> None:
        tx.delete_extension_metadata(extension_id)
        for kind in _UNLOAD_ORDER:
            deleted = tx.delete_where_sole_owner(kind, extension_id)
            released = tx.remove_owner_everywhere(kind, extension_id)
            log.debug(
                "Unloading '%s': deleted %s and released %s %s record(s)",
                extension_id,
                deleted,
                released,
                kind,
            )

    def reload_extension(self, store: InventoryStore, extension: Extension) -> None:
        """Unload the stored version of ``extension`` and load this one, atomically.

        Devices of other extensions may reference records the old version owned
        alone. Those references only have to hold again once the transaction ends.
        """

        with store.transaction() as tx:
            self._unload(tx, extension.id)
            tx.create_extension_metadata(extension.metadata)
            for entity in extension.entities():
                self._merger.upsert(tx, entity)
