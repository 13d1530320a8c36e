"""CLI entrypoints for the nghelpers services."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from .config import CONFIG_FILENAME, ConfigError, load_config
from .logging import configure_logging, get_logger
from .runtime import FunctionRegistry, InvalidInput, RuntimeHelperError, discover_policy
from .scanner import ProjectScanner
from .stores import default_cache_path

logger = get_logger("cli")


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    verbose_kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Log debug output to stderr.",
    }
    log_file_kwargs: dict[str, object] = {
        "type": Path,
        "help": "Also write debug logs to this file.",
    }
    if suppress_default:
        verbose_kwargs["default"] = argparse.SUPPRESS
        log_file_kwargs["default"] = argparse.SUPPRESS
    else:
        verbose_kwargs["default"] = False
        log_file_kwargs["default"] = None
    parser.add_argument("-v", "--verbose", **verbose_kwargs)
    parser.add_argument("--log-file", **log_file_kwargs)


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Root directory to scan (defaults to current directory).",
    )


def _add_runtime_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "runtime_command",
        metavar="command",
        nargs="?",
        default="",
        help="`new-function` or `execute`; the JSON payload is read from stdin.",
    )


def _build_scan_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nghelpers-scan",
        description="Extract @Component metadata from a TypeScript project as JSON.",
    )
    _add_logging_options(parser)
    _add_scan_arguments(parser)
    return parser


def _build_runtime_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nghelpers-runtime",
        description="Register or execute cached functions; reads one JSON payload from stdin.",
    )
    _add_logging_options(parser)
    _add_runtime_arguments(parser)
    return parser


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nghelpers",
        description="Support services for the template compiler driver.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Extract component metadata.")
    _add_logging_options(scan_parser, suppress_default=True)
    _add_scan_arguments(scan_parser)

    runtime_parser = subparsers.add_parser("runtime", help="Register or execute functions.")
    _add_logging_options(runtime_parser, suppress_default=True)
    _add_runtime_arguments(runtime_parser)
    return parser


def _configure(args: argparse.Namespace) -> None:
    configure_logging(
        verbose=bool(getattr(args, "verbose", False)),
        log_file=getattr(args, "log_file", None),
    )


def run_scan(path: str, *, stdout: TextIO, stderr: TextIO) -> int:
    """Scan ``path`` and print the result document; return the exit code."""
    try:
        result = ProjectScanner().scan(path)
        document = json.dumps(result.to_dict(), indent=2)
    except Exception as exc:  # only a scan that produces no result is fatal
        logger.debug("Scan of %s failed", path, exc_info=True)
        print(json.dumps({"components": [], "errors": [str(exc)]}), file=stderr)
        return 1
    print(document, file=stdout)
    return 0


def run_runtime(command: str, *, stdin: TextIO, stdout: TextIO, stderr: TextIO) -> int:
    """Read one JSON payload, run ``command`` and print the response."""
    try:
        payload = json.loads(stdin.read().strip())
    except json.JSONDecodeError as exc:
        _emit_error({"error": str(exc)}, stderr)
        return 1

    try:
        registry = _build_registry()
        response = registry.dispatch(command, payload)
    except RuntimeHelperError as exc:
        logger.debug("Command %s failed: %s", command, exc)
        _emit_error(exc.to_payload(), stderr)
        return 1
    except OSError as exc:
        logger.debug("Function cache I/O failed: %s", exc)
        _emit_error({"error": str(exc)}, stderr)
        return 1
    print(json.dumps(response), file=stdout)
    return 0


def _build_registry() -> FunctionRegistry:
    try:
        config = load_config(Path.cwd() / CONFIG_FILENAME)
    except ConfigError as exc:
        raise InvalidInput(str(exc)) from exc
    return FunctionRegistry(
        default_cache_path(config.cache_dir()),
        policy=discover_policy(config.script_policy()),
    )


def _emit_error(payload: Dict[str, Any], stream: TextIO) -> None:
    print(json.dumps(payload), file=stream)


def scan_main(
    argv: Optional[list[str]] = None,
    *,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """Entry point for `nghelpers-scan`."""
    args = _build_scan_parser().parse_args(argv)
    _configure(args)
    return run_scan(args.path, stdout=stdout or sys.stdout, stderr=stderr or sys.stderr)


def runtime_main(
    argv: Optional[list[str]] = None,
    *,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """Entry point for `nghelpers-runtime`."""
    args = _build_runtime_parser().parse_args(argv)
    _configure(args)
    return run_runtime(
        args.runtime_command,
        stdin=stdin or sys.stdin,
        stdout=stdout or sys.stdout,
        stderr=stderr or sys.stderr,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Combined entry point: `nghelpers scan ...` or `nghelpers runtime ...`."""
    args = _build_parser().parse_args(argv)
    _configure(args)
    if args.command == "scan":
        return run_scan(args.path, stdout=sys.stdout, stderr=sys.stderr)
    return run_runtime(
        args.runtime_command, stdin=sys.stdin, stdout=sys.stdout, stderr=sys.stderr
    )


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
