# File: zenogen/cli.py
"""
Zeno Generator - Command-Line Interface
========================================

Thin ``argparse`` front-end over the loader, pipeline, differ and watcher.

Usage examples::

    # Generate with every installed generator plugin
    zenogen generate --schema-dir ./zeno --output-dir ./src

    # Only some generators, one after another, without writing files
    zenogen generate --generators models,api --sequential --dry-run

    # Report every schema problem
    zenogen validate --schema-dir ./zeno

    # What would change between two schema trees?
    zenogen diff ./zeno-old ./zeno --json

    # Print affected files as schemas change
    zenogen -v watch --debounce 500

Generators are discovered through the ``zenogen.generators`` entry-point
group.

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/config error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from zenogen.config import ZenoConfig, resolve_config
from zenogen.differ import SchemaDiffer
from zenogen.errors import ConfigurationError, GenerationError, SchemaValidationError, WatcherError
from zenogen.exporters import ExportResult, FileExporter
from zenogen.generator import Generator
from zenogen.loader import SchemaLoader
from zenogen.models import SchemaDiffResult, SchemaSet
from zenogen.pipeline import (
    GenerationOptions,
    GenerationPipeline,
    GenerationResult,
    load_entry_point_generators,
)
from zenogen.validators import ValidationResult
from zenogen.watcher import ChangeMessage, ErrorMessage, ReadyMessage, Watcher, WatchOptions

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root zenogen logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("zenogen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from zenogen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="zenogen",
        description=(
            "Zeno Generator: schema-driven code generation with "
            "incremental change detection."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s generate --schema-dir ./zeno --output-dir ./src\n"
            "  %(prog)s validate\n"
            "  %(prog)s diff ./zeno-old ./zeno --json\n"
            "  %(prog)s -v watch\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"zenogen v{__version__}")
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Configuration file (YAML or JSON). Defaults to a discovered zeno.config.*.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Only log errors.",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    # --- generate ---
    gen = commands.add_parser("generate", help="Run generators over the schema directory.")
    gen.add_argument("--schema-dir", type=str, default=None, metavar="DIR")
    gen.add_argument("--output-dir", type=str, default=None, metavar="DIR")
    gen.add_argument(
        "--generators",
        type=str,
        default=None,
        metavar="NAMES",
        help="Comma-separated generator names to run (default: all applicable).",
    )
    gen.add_argument(
        "--sequential",
        action="store_true",
        default=False,
        help="Run generators one at a time in registration order.",
    )
    gen.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the generators but don't write files to disk.",
    )
    gen.add_argument(
        "--manifest",
        action="store_true",
        default=False,
        help="Write a manifest of exported files to the output directory.",
    )

    # --- validate ---
    val = commands.add_parser("validate", help="Report every schema problem.")
    val.add_argument("--schema-dir", type=str, default=None, metavar="DIR")

    # --- diff ---
    diff = commands.add_parser("diff", help="Compare two schema directories.")
    diff.add_argument("old", type=str, metavar="OLD")
    diff.add_argument("new", type=str, metavar="NEW")
    diff.add_argument("--json", action="store_true", default=False, help="Print JSON.")

    # --- watch ---
    watch = commands.add_parser("watch", help="Report affected files as schemas change.")
    watch.add_argument("--schema-dir", type=str, default=None, metavar="DIR")
    watch.add_argument(
        "--debounce",
        type=int,
        default=None,
        metavar="MS",
        help="Quiet period before a change batch is processed.",
    )

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _print_validation(schema_dir: Path, result: ValidationResult) -> None:
    print(f"\n{'=' * 50}")
    print("  Schema Validation Report")
    print(f"{'=' * 50}")
    print(f"  Directory: {schema_dir}")
    print(f"  Valid:     {'Yes' if result.is_valid else 'No'}")
    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for err in result.errors:
            print(f"    ✗ {err.location}: {err.message}")
    if result.is_valid:
        print("\n  ✅ All validations passed!")
    print(f"{'=' * 50}\n")


def _run_validate(config: ZenoConfig, args: argparse.Namespace) -> int:
    schema_dir: Path = Path(args.schema_dir or config.schema_dir)
    result: ValidationResult = SchemaLoader().validate_directory(schema_dir)
    _print_validation(schema_dir, result)
    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


def _select_generators(config: ZenoConfig) -> List[Generator]:
    """Installed generators, minus the families switched off in ``generate``."""
    switches: Dict[str, Any] = config.generate.model_dump()
    selected: List[Generator] = []
    for generator in load_entry_point_generators():
        if switches.get(generator.name, True):
            selected.append(generator)
        else:
            logger.info("Generator '%s' disabled by configuration.", generator.name)
    return selected


def _run_generate(config: ZenoConfig, args: argparse.Namespace) -> int:
    schema_dir: Path = Path(args.schema_dir or config.schema_dir)
    output_dir: Path = Path(args.output_dir or config.output_dir)

    try:
        schemas: SchemaSet = SchemaLoader().load(schema_dir)
    except SchemaValidationError as exc:
        logger.error("Schema loading failed: %s", exc)
        print(f"✗ {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    try:
        pipeline: GenerationPipeline = GenerationPipeline()
        for generator in _select_generators(config):
            pipeline.register(generator)
    except GenerationError as exc:
        logger.error("Generator registration failed: %s", exc)
        return EXIT_GENERATION_ERROR

    context: Dict[str, Any] = config.as_context()
    context["schemaDir"] = str(schema_dir)
    context["outputDir"] = str(output_dir)

    names: Optional[List[str]] = (
        [n.strip() for n in args.generators.split(",") if n.strip()]
        if args.generators
        else None
    )
    options: GenerationOptions = GenerationOptions(
        generators=names, parallel=not args.sequential, dry_run=args.dry_run
    )
    result: GenerationResult = pipeline.generate(schemas, context, options)
    print(result.summary())

    exporter: FileExporter = FileExporter(
        output_dir, dry_run=args.dry_run, write_manifest=args.manifest
    )
    export: ExportResult = exporter.export(result.files)
    if args.dry_run:
        for record in export.manifest.files:
            print(f"  (dry run) {record.relative_path}")
    if not export.success:
        for error in export.errors:
            print(f"✗ {error}", file=sys.stderr)
        return EXIT_EXPORT_ERROR
    # Files from the generators that succeeded are written even when others failed.
    if not result.success:
        return EXIT_GENERATION_ERROR
    return EXIT_SUCCESS


def _print_diff(diff: SchemaDiffResult) -> None:
    if diff.is_empty:
        print("No schema changes.")
        return
    print(f"Changes ({len(diff.changes)}):")
    for change in diff.changes:
        fields: str = ""
        if change.field_changes:
            fields = " [" + ", ".join(
                f"{fc.change_type.value} {fc.field}" for fc in change.field_changes
            ) + "]"
        print(f"  {change.change_type.value:<8} {change.schema_type.value:<7} {change.name}{fields}")
    print(f"Breaking: {'yes' if diff.has_breaking_changes else 'no'}")
    print(f"Generators: {', '.join(diff.affected_generators)}")
    print(f"Affected files ({len(diff.affected_files)}):")
    for affected in diff.affected_files:
        print(f"  {affected.path}  ({affected.generator_name})")
        for reason in affected.reasons:
            print(f"      - {reason}")


def _run_diff(args: argparse.Namespace) -> int:
    loader: SchemaLoader = SchemaLoader()
    try:
        old: SchemaSet = loader.load(args.old)
        new: SchemaSet = loader.load(args.new)
    except SchemaValidationError as exc:
        logger.error("Schema loading failed: %s", exc)
        print(f"✗ {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    diff: SchemaDiffResult = SchemaDiffer().compare_schema_set(old, new)
    if args.json:
        print(json.dumps(diff.to_dict(), indent=2))
    else:
        _print_diff(diff)
    return EXIT_SUCCESS


def _run_watch(config: ZenoConfig, args: argparse.Namespace) -> int:
    schema_dir: Path = Path(args.schema_dir or config.schema_dir)
    debounce: int = args.debounce if args.debounce is not None else config.dev.debounce_ms
    watcher: Watcher = Watcher(schema_dir, WatchOptions(debounce_ms=debounce))

    try:
        watcher.start()
    except WatcherError as exc:
        logger.error("%s", exc)
        print(f"✗ {exc.message}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        for message in watcher.channel:
            if isinstance(message, ReadyMessage):
                print(f"Watching {message.schema_dir} (Ctrl+C to stop)")
            elif isinstance(message, ErrorMessage):
                print(f"✗ {message.error}", file=sys.stderr)
            elif isinstance(message, ChangeMessage):
                if message.diff is not None:
                    _print_diff(message.diff)
                else:
                    for change in message.changes:
                        print(f"  {change.change_type.value:<8} {change.schema_type.value:<7} {change.name}")
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parse *argv* and run the selected command, returning its exit code.

    Used as the console-script entry point and directly by tests.
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)
    _setup_logging(-1 if args.quiet else args.verbose)

    if args.command == "diff":
        return _run_diff(args)

    try:
        config: ZenoConfig = resolve_config(args.config)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        print(f"✗ {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    if args.command == "generate":
        return _run_generate(config, args)
    if args.command == "validate":
        return _run_validate(config, args)
    return _run_watch(config, args)


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    sys.exit(main(argv))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "main",
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]
