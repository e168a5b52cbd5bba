"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(
    *,
    level: int = logging.INFO,
    force: bool = False,
    log_file: Path | None = None,
) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig``: INFO level and a terse format on
    stderr. ``log_file`` redirects output to that file instead. Pass
    ``force=True`` to reconfigure during tests.
    """

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            filename=log_file,
            encoding="utf-8",
            force=force,
        )
        return

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
