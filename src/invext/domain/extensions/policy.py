"""Conflict resolution policy for extension loads.

The policy decides, per staged extension, what the manager does with it. It only
looks at extension identity and version, never at the contributed entities:

| mode         | no conflict | same version | different version |
|--------------|-------------|--------------|-------------------|
| manual       | load        | defer        | defer             |
| auto         | load        | skip         | reload            |
| force_reload | load        | reload       | reload            |

Deferred extensions are left untouched and make the whole run fail once every
staged extension has been looked at, so an operator sees all conflicts at once.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .conflicts import LoadConflict

log = logging.getLogger(__name__)


class ResolutionMode(StrEnum):
    """How load conflicts are handled; chosen once per run by the caller."""

    MANUAL = "manual"
    AUTO = "auto"
    FORCE_RELOAD = "force_reload"


class Decision(StrEnum):
    LOAD = "load"
    SKIP = "skip"
    RELOAD = "reload"
    DEFER = "defer"

    @property
    def changes_store(self) -> bool:
        return self in {Decision.LOAD, Decision.RELOAD}


def decide(mode: ResolutionMode, conflict: LoadConflict | None) -> Decision:
    """Return what to do with a staged extension given its conflict, if any."""

    if conflict is None:
        return Decision.LOAD

    match mode:
        case ResolutionMode.MANUAL:
            return Decision.DEFER
        case ResolutionMode.AUTO:
            return Decision.RELOAD if conflict.should_reload else Decision.SKIP
        case ResolutionMode.FORCE_RELOAD:
            return Decision.RELOAD


def log_conflict(conflict: LoadConflict, mode: ResolutionMode) -> None:
    """Report a conflict at a level matching how the mode will handle it."""

    match mode:
        case ResolutionMode.MANUAL:
            if conflict.should_reload:
                log.error(
                    "Conflict: %s. Remove one of them or rerun with --auto or --force-reload.",
                    conflict.describe(),
                )
            else:
                log.error("Conflict: %s. Remove the duplicate extension.", conflict.describe())
        case ResolutionMode.AUTO:
            if conflict.should_reload:
                log.warning("Conflict: %s; reloading.", conflict.describe())
            else:
                log.info("Conflict: %s; skipping.", conflict.describe())
        case ResolutionMode.FORCE_RELOAD:
            log.warning("Conflict: %s; force-reloading.", conflict.describe())
