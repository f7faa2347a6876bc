# File: zenogen/loader.py
"""
Zeno Generator - Schema Loader
===============================
Reads a schema directory into a validated ``SchemaSet``.

Expected layout::

    <schema_dir>/
        app.json            (required)
        entities/*.json     (optional, one entity per file)
        enums/*.json        (optional)
        pages/*.json        (optional)

The file stem is the schema name.  Missing subdirectories are treated as
empty; a missing ``app.json`` is a hard failure.  Every I/O, JSON or
validation problem is raised as a single ``SchemaValidationError`` carrying
the offending file path (and line when known).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from zenogen.errors import FileSystemError, SchemaValidationError
from zenogen.models import SchemaSet, SchemaType
from zenogen.utils import Timer, read_file
from zenogen.validators import ValidationResult, build_schema_set, schema_file_path

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.loader")

SCHEMA_SUBDIRECTORIES: Tuple[str, ...] = ("entities", "enums", "pages")
APP_FILE_NAME: str = "app.json"


@dataclass
class _RawTree:
    """Parsed-but-unvalidated documents plus their source text."""

    entities: Dict[str, Any] = field(default_factory=dict)
    enums: Dict[str, Any] = field(default_factory=dict)
    pages: Dict[str, Any] = field(default_factory=dict)
    app: Any = None
    sources: Dict[str, str] = field(default_factory=dict)


class SchemaLoader:
    """
    Loads and validates every schema document under a directory.

    The loader is stateless; one instance can be shared by the CLI, the
    pipeline and the watcher.
    """

    def load(self, schema_dir: Union[str, Path]) -> SchemaSet:
        """
        Load *schema_dir* and return the validated ``SchemaSet``.

        Raises:
            SchemaValidationError: on the first file that cannot be read,
                parsed or validated.  For validation failures the complete
                ``ValidationResult`` is attached as ``.errors``.
        """
        root: Path = Path(schema_dir)
        base_path: str = root.as_posix()
        if not root.is_dir():
            raise SchemaValidationError("Schema directory not found", base_path)

        with Timer(f"load {base_path}"):
            tree: _RawTree = self._read_tree(root)
            schema_set, result = build_schema_set(
                tree.entities,
                tree.enums,
                tree.pages,
                tree.app,
                base_path,
                tree.sources,
            )

        if schema_set is None:
            first = result.errors[0] if result.errors else None
            if first is None:
                raise SchemaValidationError(
                    "Schema validation failed", base_path, errors=result
                )
            raise SchemaValidationError(
                first.message, first.path, first.line, errors=result
            )

        logger.info(
            "Loaded schemas from %s: %d entities, %d enums, %d pages.",
            base_path,
            len(schema_set.entities),
            len(schema_set.enums),
            len(schema_set.pages),
        )
        return schema_set

    def validate_directory(self, schema_dir: Union[str, Path]) -> ValidationResult:
        """Report every load and validation problem under *schema_dir* without raising."""
        root: Path = Path(schema_dir)
        base_path: str = root.as_posix()
        result: ValidationResult = ValidationResult()

        if not root.is_dir():
            result.add_error("DIRECTORY_NOT_FOUND", "Schema directory not found", base_path)
            return result

        tree: _RawTree = self._read_tree(root, collect=result)
        _, schema_result = build_schema_set(
            tree.entities, tree.enums, tree.pages, tree.app, base_path, tree.sources
        )
        result.merge(schema_result)
        logger.info("Validated %s. %s", base_path, result.summary())
        return result

    # -- Reading ------------------------------------------------------------

    def _read_tree(
        self, root: Path, collect: Optional[ValidationResult] = None
    ) -> _RawTree:
        """
        Read every document under *root*.

        With *collect* set, per-file failures are recorded there and the file
        is skipped; otherwise the first failure is raised.
        """
        tree: _RawTree = _RawTree()
        base_path: str = root.as_posix()
        targets: Dict[str, Tuple[SchemaType, Dict[str, Any]]] = {
            "entities": (SchemaType.ENTITY, tree.entities),
            "enums": (SchemaType.ENUM, tree.enums),
            "pages": (SchemaType.PAGE, tree.pages),
        }
        for folder in SCHEMA_SUBDIRECTORIES:
            schema_type, documents = targets[folder]
            for path in self._list_json_files(root / folder):
                loaded = self._read_or_collect(path, collect)
                if loaded is None:
                    continue
                data, source = loaded
                documents[path.stem] = data
                tree.sources[schema_file_path(base_path, schema_type, path.stem)] = source

        app_loaded = self._read_or_collect(root / APP_FILE_NAME, collect)
        if app_loaded is not None:
            tree.app, app_source = app_loaded
            tree.sources[schema_file_path(base_path, SchemaType.APP, "app")] = app_source
        return tree

    def _read_or_collect(
        self, path: Path, collect: Optional[ValidationResult]
    ) -> Optional[Tuple[Any, str]]:
        if collect is None:
            return self._load_file(path)
        try:
            return self._load_file(path)
        except SchemaValidationError as exc:
            collect.add_error("LOAD_FAILED", exc.message, exc.file_path, exc.line_number)
            return None

    @staticmethod
    def _list_json_files(directory: Path) -> List[Path]:
        """Top-level ``*.json`` files, sorted; missing or non-directories are empty."""
        if not directory.is_dir():
            return []
        return sorted(
            p for p in directory.iterdir() if p.suffix == ".json" and p.is_file()
        )

    @staticmethod
    def _load_file(path: Path) -> Tuple[Any, str]:
        """Read and parse one JSON document, returning ``(data, source)``."""
        file_path: str = path.as_posix()
        try:
            source: str = read_file(path)
        except FileSystemError as exc:
            if isinstance(exc.original_error, FileNotFoundError):
                raise SchemaValidationError("Schema file not found", file_path) from exc
            raise SchemaValidationError(
                f"Failed to read file: {exc.original_error}", file_path
            ) from exc

        try:
            data: Any = json.loads(source)
        except json.JSONDecodeError as exc:
            raise SchemaValidationError(
                f"Invalid JSON syntax: {exc.msg}", file_path, exc.lineno
            ) from exc

        logger.debug("Read %s (%d chars)", file_path, len(source))
        return data, source


def create_schema_loader() -> SchemaLoader:
    return SchemaLoader()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SCHEMA_SUBDIRECTORIES",
    "APP_FILE_NAME",
    "SchemaLoader",
    "create_schema_loader",
]
