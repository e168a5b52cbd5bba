from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from invext.domain.extensions import (
    ExtensionManager,
    ResolutionMode,
    UnresolvedConflictsError,
)
from invext.domain.model import EntityKind
from invext.domain.ports.store import (
    DuplicateRecordError,
    InventoryStore,
    ProtectedRecordError,
    StoreWriteError,
)
from tests.helpers.extensions import (
    make_extension,
    make_pair_different_version,
    make_pair_same_metadata,
    make_pair_sharing_contents,
)
from tests.helpers.store import (
    InMemoryInventoryStore,
    entity_ids,
    extension_ids,
    store_contains,
)

if TYPE_CHECKING:
    from invext.adapters.sqlalchemy import SqlAlchemyInventoryStore
    from invext.domain.model import Extension


@pytest.mark.parametrize("mode", list(ResolutionMode))
def test_fresh_load(store: InventoryStore, mode: ResolutionMode) -> None:
    extension = make_extension()

    report = ExtensionManager.with_extensions([extension], mode=mode).load_extensions(store)

    assert report.loaded == [extension.id]
    assert report.conflicts == []
    assert report.succeeded
    assert extension_ids(store) == {extension.id}
    for entity in extension.entities():
        stored = store.get_by_id(entity.kind, entity.id)
        assert stored is not None
        assert stored == entity
        assert stored.owners == {extension.id}
    for kind in EntityKind:
        assert entity_ids(store, kind) == {
            entity.id for entity in extension.entities() if entity.kind is kind
        }


def test_same_version_is_skipped_in_auto_mode(store: InventoryStore) -> None:
    original, duplicate = make_pair_same_metadata()
    ExtensionManager.with_extensions([original]).load_extensions(store)

    report = ExtensionManager.with_extensions(
        [duplicate], mode=ResolutionMode.AUTO
    ).load_extensions(store)

    assert report.skipped == [original.id]
    assert [conflict.same_version for conflict in report.conflicts] == [True]
    assert store_contains(store, original)
    assert "device-2" not in entity_ids(store, EntityKind.DEVICE)


def test_same_version_is_deferred_in_manual_mode(store: InventoryStore) -> None:
    original, duplicate = make_pair_same_metadata()
    ExtensionManager.with_extensions([original]).load_extensions(store)

    with pytest.raises(UnresolvedConflictsError) as excinfo:
        ExtensionManager.with_extensions([duplicate]).load_extensions(store)

    report = excinfo.value.report
    assert report.deferred == [original.id]
    assert [conflict.same_version for conflict in report.unresolved] == [True]
    assert store_contains(store, original)
    assert "device-2" not in entity_ids(store, EntityKind.DEVICE)


@pytest.mark.parametrize("mode", [ResolutionMode.AUTO, ResolutionMode.FORCE_RELOAD])
def test_version_change_reloads(store: InventoryStore, mode: ResolutionMode) -> None:
    original, updated = make_pair_different_version()
    ExtensionManager.with_extensions([original]).load_extensions(store)

    report = ExtensionManager.with_extensions([updated], mode=mode).load_extensions(store)

    assert report.reloaded == [updated.id]
    assert [conflict.should_reload for conflict in report.conflicts] == [True]
    assert store_contains(store, updated)
    assert updated.metadata in store.list_extension_metadata()
    assert original.metadata not in store.list_extension_metadata()
    assert "device-1" not in entity_ids(store, EntityKind.DEVICE)
    assert "manufacturer-1" not in entity_ids(store, EntityKind.MANUFACTURER)


def test_force_reload_reloads_same_version(store: InventoryStore) -> None:
    original, duplicate = make_pair_same_metadata()
    ExtensionManager.with_extensions([original]).load_extensions(store)

    report = ExtensionManager.with_extensions(
        [duplicate], mode=ResolutionMode.FORCE_RELOAD
    ).load_extensions(store)

    assert report.reloaded == [duplicate.id]
    assert store_contains(store, duplicate)
    assert "device-1" not in entity_ids(store, EntityKind.DEVICE)


def test_version_change_aborts_in_manual_mode(store: InventoryStore) -> None:
    original, updated = make_pair_different_version()
    ExtensionManager.with_extensions([original]).load_extensions(store)
    before = {kind: store.list_entities(kind) for kind in EntityKind}

    with pytest.raises(UnresolvedConflictsError) as excinfo:
        ExtensionManager.with_extensions([updated]).load_extensions(store)

    assert excinfo.value.report.deferred == [updated.id]
    assert not excinfo.value.report.succeeded
    assert original.metadata in store.list_extension_metadata()
    assert {kind: store.list_entities(kind) for kind in EntityKind} == before


def test_manual_mode_processes_every_extension_before_failing(store: InventoryStore) -> None:
    original, updated = make_pair_different_version()
    ExtensionManager.with_extensions([original]).load_extensions(store)
    unrelated = make_extension("unrelated", contents=7)

    with pytest.raises(UnresolvedConflictsError) as excinfo:
        ExtensionManager.with_extensions([updated, unrelated]).load_extensions(store)

    assert excinfo.value.report.loaded == ["unrelated"]
    assert store_contains(store, unrelated)


@pytest.mark.parametrize("reverse", [False, True], ids=["in-order", "reversed"])
def test_shared_entities_union_owners(store: InventoryStore, reverse: bool) -> None:
    first, second = make_pair_sharing_contents()
    ordered = [second, first] if reverse else [first, second]

    report = ExtensionManager.with_extensions(ordered).load_extensions(store)

    assert report.loaded == [extension.id for extension in ordered]
    for entity in first.entities():
        stored = store.get_by_id(entity.kind, entity.id)
        assert stored is not None
        assert stored.owners == {first.id, second.id}


def test_unload_deletes_sole_owned_and_releases_shared(store: InventoryStore) -> None:
    first, second = make_pair_sharing_contents()
    private = make_extension(first.id, contents=9)
    first.manufacturers += private.manufacturers
    first.categories += private.categories
    first.devices += private.devices
    ExtensionManager.with_extensions([first, second]).load_extensions(store)

    ExtensionManager().unload_extension(store, first.id)

    assert first.metadata not in store.list_extension_metadata()
    assert "device-9" not in entity_ids(store, EntityKind.DEVICE)
    assert "manufacturer-9" not in entity_ids(store, EntityKind.MANUFACTURER)
    assert "category-9" not in entity_ids(store, EntityKind.CATEGORY)
    shared = store.get_by_id(EntityKind.DEVICE, "device-1")
    assert shared is not None
    assert shared.owners == {second.id}


def test_unload_of_last_owner_deletes_shared_entities(store: InventoryStore) -> None:
    first, second = make_pair_sharing_contents()
    ExtensionManager.with_extensions([first, second]).load_extensions(store)
    manager = ExtensionManager()

    manager.unload_extension(store, first.id)
    manager.unload_extension(store, second.id)

    assert "device-1" not in entity_ids(store, EntityKind.DEVICE)
    assert "manufacturer-1" not in entity_ids(store, EntityKind.MANUFACTURER)


def test_builtin_extension_cannot_be_unloaded(store: InventoryStore) -> None:
    extension = make_extension("builtin", contents=4)
    if isinstance(store, InMemoryInventoryStore):
        ExtensionManager.with_extensions([extension]).load_extensions(store)
    before = store.list_extension_metadata()

    with pytest.raises(ProtectedRecordError):
        ExtensionManager().unload_extension(store, "builtin")

    assert store.list_extension_metadata() == before


def test_stage_conflicts_are_reported(memory_store: InMemoryInventoryStore) -> None:
    first = make_extension("dup", contents=1)
    manager = ExtensionManager.with_extensions([first, make_extension("dup", contents=2)])

    report = manager.load_extensions(memory_store)

    assert report.loaded == ["dup"]
    assert [conflict.id for conflict in report.stage_conflicts] == ["dup"]
    assert store_contains(memory_store, first)


def test_write_failure_stops_the_load(memory_store: InMemoryInventoryStore) -> None:
    memory_store.create_extension_metadata(make_extension("existing").metadata)
    extension = make_extension("existing")
    manager = ExtensionManager()

    with pytest.raises(DuplicateRecordError, match="already exists"):
        manager.load_extension(memory_store, extension)


def _accessories_using(manufacturer_id: str) -> Extension:
    accessories = make_extension("accessories", contents=2)
    accessories.devices = [replace(accessories.devices[0], manufacturer=manufacturer_id)]
    return accessories


@pytest.mark.parametrize("mode", [ResolutionMode.AUTO, ResolutionMode.FORCE_RELOAD])
def test_reload_of_records_referenced_by_another_extension(
    sqlite_store: SqlAlchemyInventoryStore, mode: ResolutionMode
) -> None:
    apple = make_extension("apple", contents=1)
    accessories = _accessories_using("manufacturer-1")
    ExtensionManager.with_extensions([apple, accessories]).load_extensions(sqlite_store)
    updated = make_extension("apple", version="2.0.0", contents=1)
    later = make_extension("later", contents=3)

    report = ExtensionManager.with_extensions([updated, later], mode=mode).load_extensions(
        sqlite_store
    )

    assert report.reloaded == ["apple"]
    assert report.loaded == ["later"]
    assert updated.metadata in sqlite_store.list_extension_metadata()
    manufacturer = sqlite_store.get_by_id(EntityKind.MANUFACTURER, "manufacturer-1")
    assert manufacturer is not None
    assert manufacturer.owners == {"apple"}
    pencil = sqlite_store.get_by_id(EntityKind.DEVICE, "device-2")
    assert pencil is not None
    assert pencil.owners == {"accessories"}


def test_failed_reload_keeps_the_previous_version(
    sqlite_store: SqlAlchemyInventoryStore,
) -> None:
    apple = make_extension("apple", contents=1)
    accessories = _accessories_using("manufacturer-1")
    ExtensionManager.with_extensions([apple, accessories]).load_extensions(sqlite_store)
    before = {kind: sqlite_store.list_entities(kind) for kind in EntityKind}
    # the new version no longer provides the manufacturer the accessory device uses
    updated = make_extension("apple", version="2.0.0", contents=4)

    with pytest.raises(StoreWriteError):
        ExtensionManager().reload_extension(sqlite_store, updated)

    assert apple.metadata in sqlite_store.list_extension_metadata()
    assert {kind: sqlite_store.list_entities(kind) for kind in EntityKind} == before


def test_unload_of_referenced_records_is_rolled_back(
    sqlite_store: SqlAlchemyInventoryStore,
) -> None:
    apple = make_extension("apple", contents=1)
    accessories = _accessories_using("manufacturer-1")
    ExtensionManager.with_extensions([apple, accessories]).load_extensions(sqlite_store)

    with pytest.raises(StoreWriteError):
        ExtensionManager().unload_extension(sqlite_store, "apple")

    assert extension_ids(sqlite_store) == {"apple", "accessories"}
    assert "manufacturer-1" in entity_ids(sqlite_store, EntityKind.MANUFACTURER)
