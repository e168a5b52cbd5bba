"""Staging of extensions ahead of a load."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from invext.domain.model import Extension, ExtensionId, ExtensionMetadata

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StageConflict:
    """An extension was rejected because another one with its ID is already staged."""

    staged: ExtensionMetadata
    rejected: ExtensionMetadata

    @property
    def id(self) -> ExtensionId:
        return self.staged.id


class StagingSet:
    """Extensions waiting to be reconciled against the store, unique by ID."""

    def __init__(self) -> None:
        self._extensions: dict[ExtensionId, Extension] = {}

    def __len__(self) -> int:
        return len(self._extensions)

    def __iter__(self) -> Iterator[Extension]:
        return iter(self._extensions.values())

    def __contains__(self, extension_id: object) -> bool:
        return extension_id in self._extensions

    def stage(self, extension: Extension) -> StageConflict | None:
        """Stage ``extension`` unless an extension with the same ID is already staged."""

        already_staged = self._extensions.get(extension.id)
        if already_staged is not None:
            log.error(
                "Extension with ID '%s' already staged (version %s), skipping version %s.",
                extension.id,
                already_staged.version,
                extension.version,
            )
            return StageConflict(staged=already_staged.metadata, rejected=extension.metadata)

        log.info("Staging extension '%s'.", extension.id)
        self._extensions[extension.id] = extension
        return None

    def drain(self) -> list[Extension]:
        """Hand over every staged extension and leave the set empty."""

        extensions = list(self._extensions.values())
        self._extensions.clear()
        return extensions
