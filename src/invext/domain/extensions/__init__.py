"""Extension staging, conflict detection and reconciliation.

Flow for one run:
1) stage extensions (duplicate IDs are rejected)
2) classify each staged extension against the loaded extension metadata
3) decide load / skip / reload / defer from the resolution mode
4) merge the extension's entities into the store
"""

from __future__ import annotations

from .conflicts import LoadConflict
from .manager import ExtensionManager
from .merge import EntityMerger, KeyedLock
from .policy import Decision, ResolutionMode, decide
from .report import LoadReport, UnresolvedConflictsError
from .staging import StageConflict, StagingSet

__all__ = [
    "Decision",
    "EntityMerger",
    "ExtensionManager",
    "KeyedLock",
    "LoadConflict",
    "LoadReport",
    "ResolutionMode",
    "StageConflict",
    "StagingSet",
    "UnresolvedConflictsError",
    "decide",
]
