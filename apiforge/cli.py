# File: apiforge/cli.py
"""
APIForge - Command-Line Interface
===================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Generate every artifact for one entity into the current project
    apiforge generate schemas/article.yaml

    # Custom project root and layout, verbose
    apiforge -v generate schemas/article.yaml --root ../app --config apiforge.yaml

    # Many schemas; failures are reported per file
    apiforge batch schemas/*.yaml

    # Parse only
    apiforge validate schemas/*.yaml

Exit codes:
    0 — success
    1 — schema invalid (validate) or at least one batch file failed
    2 — generation error (template rendering or file writing)
    4 — input error (schema or config unreadable / malformed)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from apiforge.errors import (
    ApiForgeError,
    FileWriteError,
    SchemaFormatError,
    SchemaIOError,
    TemplateRenderError,
)

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apiforge")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root apiforge logger based on verbosity level.

    Args:
        verbosity: -1 = silent, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.CRITICAL + 1

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("apiforge")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_generation_options(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "--root",
        type=str,
        default=".",
        metavar="DIR",
        help="Project root the artifact paths are relative to (default: current directory).",
    )
    sub.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="FILE",
        help="Generator config file (YAML/JSON) overriding the output layout.",
    )
    sub.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Render everything but don't write files to disk.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from apiforge import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="apiforge",
        description=(
            "APIForge — schema-driven full-stack API generator.\n\n"
            "Turns one entity schema (JSON/YAML) into a SQL migration, Zod "
            "schema, Edge Function repository and endpoint, frontend model, "
            "service and hook, admin page, demo component and CLI client."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s generate schemas/article.yaml\n"
            "  %(prog)s -v batch schemas/*.yaml --root ../app\n"
            "  %(prog)s validate schemas/*.yaml\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"APIForge v{__version__}",
    )

    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v INFO, -vv DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    generate = subparsers.add_parser("generate", help="Generate all artifacts for one schema.")
    generate.add_argument("schema", metavar="SCHEMA", help="Schema file (JSON or YAML).")
    _add_generation_options(generate)

    batch = subparsers.add_parser("batch", help="Generate artifacts for several schemas.")
    batch.add_argument("schemas", nargs="+", metavar="SCHEMA", help="Schema files.")
    _add_generation_options(batch)

    validate = subparsers.add_parser("validate", help="Parse schemas without generating.")
    validate.add_argument("schemas", nargs="+", metavar="SCHEMA", help="Schema files.")

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _make_generator(args: argparse.Namespace):
    from apiforge.generator import APIGenerator
    from apiforge.loader import load_config

    config = load_config(args.config)
    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")
    return APIGenerator(Path(args.root), config, dry_run=args.dry_run)


def _run_generate(args: argparse.Namespace) -> int:
    try:
        generator = _make_generator(args)
        report = generator.generate_one(Path(args.schema))
    except (SchemaIOError, SchemaFormatError) as exc:
        logger.error("%s", exc.message)
        return EXIT_INPUT_ERROR
    except (TemplateRenderError, FileWriteError) as exc:
        logger.error("%s", exc.message)
        return EXIT_GENERATION_ERROR

    print(report.summary())
    return EXIT_SUCCESS


def _run_batch(args: argparse.Namespace) -> int:
    try:
        generator = _make_generator(args)
    except ApiForgeError as exc:
        logger.error("%s", exc.message)
        return EXIT_INPUT_ERROR

    batch = generator.generate_batch([Path(p) for p in args.schemas])
    print(batch.summary())
    return EXIT_SUCCESS if batch.success else EXIT_VALIDATION_ERROR


def _run_validate(args: argparse.Namespace) -> int:
    from apiforge.generator import APIGenerator

    report = APIGenerator(Path(".")).validate([Path(p) for p in args.schemas])
    print(report.summary())
    return report.exit_code


_COMMANDS = {
    "generate": _run_generate,
    "batch": _run_batch,
    "validate": _run_validate,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    exit_code: int = _COMMANDS[args.command](args)

    if exit_code == EXIT_SUCCESS:
        logger.info("%s completed successfully.", args.command)
    else:
        logger.error("%s failed with exit code %d.", args.command, exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("apiforge.cli loaded.")
