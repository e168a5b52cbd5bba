"""Port for reading extension descriptors from an external source."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from invext.domain.model import Extension


class ExtensionParseError(ValueError):
    """Raised when a single extension file cannot be turned into a descriptor."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ExtensionSourceError(RuntimeError):
    """Raised after a run in which some extension files could not be parsed."""

    def __init__(self, failures: list[ExtensionParseError]) -> None:
        paths = ", ".join(str(failure.path) for failure in failures)
        super().__init__(f"{len(failures)} extension file(s) failed to parse: {paths}")
        self.failures = failures


@dataclass(slots=True)
class SourceLoadResult:
    """Descriptors read from a source, plus the files that failed to parse."""

    extensions: list[Extension] = field(default_factory=list["Extension"])
    failures: list[ExtensionParseError] = field(default_factory=list["ExtensionParseError"])


@runtime_checkable
class ExtensionSource(Protocol):
    """Callable port producing extension descriptors from a directory."""

    def __call__(self, directory: Path) -> SourceLoadResult: ...


__all__ = [
    "ExtensionParseError",
    "ExtensionSource",
    "ExtensionSourceError",
    "SourceLoadResult",
]
