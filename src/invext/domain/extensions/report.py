"""Outcome of a load pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from invext.domain.model import ExtensionId

    from .conflicts import LoadConflict
    from .staging import StageConflict


@dataclass(slots=True)
class LoadReport:
    """Summary of one ``ExtensionManager.load_extensions`` pass."""

    loaded: list[ExtensionId] = field(default_factory=list["ExtensionId"])
    reloaded: list[ExtensionId] = field(default_factory=list["ExtensionId"])
    skipped: list[ExtensionId] = field(default_factory=list["ExtensionId"])
    deferred: list[ExtensionId] = field(default_factory=list["ExtensionId"])
    conflicts: list[LoadConflict] = field(default_factory=list["LoadConflict"])
    stage_conflicts: list[StageConflict] = field(default_factory=list["StageConflict"])

    @property
    def unresolved(self) -> list[LoadConflict]:
        return [conflict for conflict in self.conflicts if conflict.id in self.deferred]

    @property
    def succeeded(self) -> bool:
        return not self.deferred


class UnresolvedConflictsError(RuntimeError):
    """Raised after a manual-mode pass that left conflicts for an operator to resolve."""

    def __init__(self, report: LoadReport) -> None:
        ids = ", ".join(f"'{extension_id}'" for extension_id in report.deferred)
        super().__init__(f"Unresolved extension conflicts: {ids}")
        self.report = report
