# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from enum import IntEnum
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from invext.app import list_extensions, load_extensions, unload_extension
from invext.config import configure_logging
from invext.domain.extensions import LoadReport, ResolutionMode, UnresolvedConflictsError
from invext.domain.ports.source import ExtensionSourceError
from invext.domain.ports.store import (
    SchemaSetupError,
    StoreAuthenticationError,
    StoreConnectionError,
    StoreSelectionError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


class ExitCode(IntEnum):
    OK = 0
    CONNECTION_FAILED = 1
    SELECTION_FAILED = 2
    AUTHENTICATION_FAILED = 3
    SCHEMA_SETUP_FAILED = 4
    UNRESOLVED_CONFLICTS = 5
    FAILURE = 6


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage inventory extensions")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write log output to this file instead of stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    load = subparsers.add_parser("load", help="Load extensions from a directory")
    load.add_argument(
        "--extensions-dir",
        type=Path,
        help="Directory holding *.toml extension files (defaults to config)",
    )
    mode = load.add_mutually_exclusive_group()
    mode.add_argument(
        "--force-reload",
        dest="mode",
        action="store_const",
        const=ResolutionMode.FORCE_RELOAD,
        help="Reload every extension that is already loaded",
    )
    mode.add_argument(
        "--auto",
        dest="mode",
        action="store_const",
        const=ResolutionMode.AUTO,
        help="Skip unchanged extensions and reload the ones whose version changed",
    )
    load.set_defaults(mode=ResolutionMode.MANUAL)

    unload = subparsers.add_parser("unload", help="Unload an extension")
    unload.add_argument("extension_id", help="Id of the extension to unload")

    subparsers.add_parser("list", help="List loaded extensions")

    return parser.parse_args(list(argv))


def _exit_code_for(exc: Exception) -> ExitCode:
    match exc:
        case StoreConnectionError():
            return ExitCode.CONNECTION_FAILED
        case StoreSelectionError():
            return ExitCode.SELECTION_FAILED
        case StoreAuthenticationError():
            return ExitCode.AUTHENTICATION_FAILED
        case SchemaSetupError():
            return ExitCode.SCHEMA_SETUP_FAILED
        case _:
            return ExitCode.FAILURE


def _log_report(report: LoadReport) -> None:
    log.info(
        "Extension load finished: loaded=%s, reloaded=%s, skipped=%s",
        report.loaded,
        report.reloaded,
        report.skipped,
    )
    for conflict in report.stage_conflicts:
        log.warning(
            "Extension '%s' was provided more than once; only the first copy was used",
            conflict.id,
        )


def _run_command(args: argparse.Namespace) -> None:
    match args.command:
        case "load":
            report = load_extensions(mode=args.mode, directory=args.extensions_dir)
            _log_report(report)
        case "unload":
            unload_extension(args.extension_id)
        case "list":
            for metadata in list_extensions():
                print(f"{metadata.id}\t{metadata.version}\t{metadata.display_name}")
        case _:
            raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        log_file=parsed_args.log_file,
    )

    try:
        _run_command(parsed_args)
    except UnresolvedConflictsError as exc:
        for conflict in exc.report.unresolved:
            log.error("Unresolved conflict: %s", conflict.describe())  # noqa: TRY400
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(ExitCode.UNRESOLVED_CONFLICTS)
    except ExtensionSourceError as exc:
        for failure in exc.failures:
            log.error("Extension file %s: %s", failure.path, failure.reason)  # noqa: TRY400
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(ExitCode.FAILURE)
    except Exception as exc:
        code = _exit_code_for(exc)
        log.exception("Fatal error during '%s' (exit code %s)", parsed_args.command, int(code))
        sys.exit(code)

    sys.exit(ExitCode.OK)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(ExitCode.OK)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
