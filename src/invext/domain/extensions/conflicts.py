"""Classification of staged extensions against the extensions already loaded."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from invext.domain.model import Extension, ExtensionId, ExtensionMetadata, SemVer


@dataclass(frozen=True, slots=True)
class LoadConflict:
    """A staged extension shares its ID with an extension already in the store."""

    id: ExtensionId
    same_version: bool
    loaded_version: SemVer | None = None
    staged_version: SemVer | None = None

    @classmethod
    def classify(
        cls,
        staged: Extension,
        loaded: list[ExtensionMetadata],
    ) -> LoadConflict | None:
        """Return the conflict between ``staged`` and ``loaded``, if there is one.

        The matching entry is removed from ``loaded``. IDs are unique among loaded
        extensions (store primary key) and among staged extensions (staging set), so
        a staged extension conflicts with at most one loaded extension and vice versa.
        """

        for index, metadata in enumerate(loaded):
            if metadata.id != staged.id:
                continue
            del loaded[index]
            return cls(
                id=metadata.id,
                same_version=metadata.version == staged.version,
                loaded_version=metadata.version,
                staged_version=staged.version,
            )
        return None

    @property
    def should_reload(self) -> bool:
        return not self.same_version

    def describe(self) -> str:
        if self.same_version:
            return f"extension '{self.id}' is already loaded at version {self.loaded_version}"
        return (
            f"extension '{self.id}' is loaded at version {self.loaded_version} "
            f"but version {self.staged_version} is staged"
        )
