"""Helpers for reading invext settings from environment variables."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def _env_value(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Read every variable in ``names``; blank values count as unset.

    Raises ``MissingConfigurationError`` naming all absent variables at once.
    """

    values = {name: _env_value(name) for name in names}
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise MissingConfigurationError(missing)
    return {name: value for name, value in values.items() if value is not None}


def any_env_var_set(names: Sequence[str]) -> bool:
    return any(_env_value(name) is not None for name in names)
