# File: zenogen/exporters.py
"""
Zeno Generator - File Exporter
===============================
Writes the ``GeneratedFile`` objects returned by the pipeline to disk.

Responsible for:
    1. Refusing any output path that escapes the output directory.
    2. Writing each file atomically (write-to-temp then rename).
    3. Recording a manifest with sizes, line counts and SHA-256 checksums.
    4. Dry runs: the manifest is built, nothing touches the filesystem.

A failing file is recorded in ``ExportResult.errors`` and the batch goes
on; files already written stay in place.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

from zenogen.errors import FileSystemError
from zenogen.models import GeneratedFile
from zenogen.utils import Timer, count_lines, sha256_hex, validate_path, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.exporters")

MANIFEST_FILE_NAME: str = ".zeno-manifest.json"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(slots=True)
class ExportManifest:
    """Everything written (or, in a dry run, that would have been written)."""

    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    dry_run: bool = False
    files: List[FileRecord] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "dry_run": self.dry_run,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# FileExporter
# ---------------------------------------------------------------------------


class FileExporter:
    """
    Writes generated files under one output directory.

    Usage::

        exporter = FileExporter("./src")
        result = exporter.export(generation_result.files)
        print(result.manifest.to_json())

    Thread-safety: NOT thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        *,
        atomic_writes: bool = True,
        dry_run: bool = False,
        write_manifest: bool = False,
    ) -> None:
        self._output_dir: Path = Path(output_dir).resolve()
        self._atomic_writes: bool = atomic_writes
        self._dry_run: bool = dry_run
        self._write_manifest: bool = write_manifest

        logger.debug(
            "FileExporter initialised: output_dir=%s, atomic=%s, dry_run=%s.",
            self._output_dir,
            self._atomic_writes,
            self._dry_run,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def export(self, files: Iterable[GeneratedFile]) -> ExportResult:
        records: List[FileRecord] = []
        errors: List[str] = []

        with Timer("export") as timer:
            for generated in files:
                try:
                    records.append(self._export_one(generated))
                except FileSystemError as exc:
                    errors.append(f"{generated.path}: {exc.message}")
                    logger.error("Failed to export %s: %s", generated.path, exc.message)

            manifest: ExportManifest = self._build_manifest(records)
            if self._write_manifest and not self._dry_run:
                try:
                    write_file(
                        self._output_dir / MANIFEST_FILE_NAME,
                        manifest.to_json(),
                        atomic=self._atomic_writes,
                    )
                except FileSystemError as exc:
                    errors.append(f"{MANIFEST_FILE_NAME}: {exc.message}")
                    logger.error("Failed to write manifest: %s", exc.message)

        result: ExportResult = ExportResult(
            success=not errors,
            manifest=manifest,
            errors=tuple(errors),
            elapsed_seconds=timer.elapsed,
        )

        if result.success:
            logger.info(
                "%s %d file(s), %d bytes in %.3fs.",
                "Dry run planned" if self._dry_run else "Exported",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.", len(errors), timer.elapsed
            )
        return result

    # -- Internals ----------------------------------------------------------

    def _export_one(self, generated: GeneratedFile) -> FileRecord:
        target: Path = validate_path(generated.path, self._output_dir)
        if target == self._output_dir:
            raise FileSystemError(
                "Output path must name a file", generated.path, "PATH_TRAVERSAL"
            )

        content: str = generated.content
        if self._dry_run:
            size_bytes: int = len(content.encode("utf-8"))
        else:
            size_bytes = write_file(target, content, atomic=self._atomic_writes)

        return FileRecord(
            relative_path=target.relative_to(self._output_dir).as_posix(),
            absolute_path=str(target),
            size_bytes=size_bytes,
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )

    def _build_manifest(self, records: List[FileRecord]) -> ExportManifest:
        import zenogen

        return ExportManifest(
            generator_version=zenogen.__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            dry_run=self._dry_run,
            files=records,
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_FILE_NAME",
    "FileRecord",
    "ExportManifest",
    "ExportResult",
    "FileExporter",
]
