"""Merging of extension-owned entities into the store.

An entity may be contributed by several extensions. Upserting it keeps the
incoming fields and unions the owning extensions with whatever is stored. The
read and the overwrite happen in one store transaction while holding a lock keyed
by ``(kind, id)``, so two concurrent upserts of the same entity cannot lose each
other's owners.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, cast

from invext.domain.model import Category, Device, EntityKind, Manufacturer

if TYPE_CHECKING:
    from invext.domain.model import EntityKey, InventoryEntity
    from invext.domain.ports.store import InventoryStore

log = getLogger(__name__)


@dataclass(slots=True)
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class KeyedLock:
    """One mutex per entity key, dropped again once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[EntityKey, _KeyLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: EntityKey) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]


def _creator_for(store: InventoryStore, kind: EntityKind) -> Callable[[InventoryEntity], None]:
    match kind:
        case EntityKind.MANUFACTURER:
            return lambda entity: store.create_manufacturer(cast(Manufacturer, entity))
        case EntityKind.CATEGORY:
            return lambda entity: store.create_category(cast(Category, entity))
        case EntityKind.DEVICE:
            return lambda entity: store.create_device(cast(Device, entity))


class EntityMerger:
    """Create-or-merge entities in a store, serialised per entity key."""

    def __init__(self, locks: KeyedLock | None = None) -> None:
        self._locks = locks if locks is not None else KeyedLock()

    def upsert(self, store: InventoryStore, entity: InventoryEntity) -> InventoryEntity:
        """Store ``entity``, merging ownership with an existing record of the same key.

        Returns the record as written.
        """

        with self._locks.hold(entity.key), store.transaction() as tx:
            existing = tx.get_by_id(entity.kind, entity.id)
            if existing is None:
                _creator_for(tx, entity.kind)(entity)
                log.debug("Created %s owned by %s", entity.key, sorted(entity.owners))
                return entity

            merged = entity.merged_with(existing)
            tx.replace_entity(merged)
            log.debug(
                "Merged %s, owners %s -> %s",
                entity.key,
                sorted(existing.owners),
                sorted(merged.owners),
            )
            return merged
