# File: zenogen/__init__.py
"""
Zeno Generator — Incremental Schema-Driven Code Generation
===========================================================

Loads a directory of JSON schema documents (entities, enums, pages and one
application document), validates them with Pydantic V2, and hands the
resulting ``SchemaSet`` to pluggable generators.  Between two snapshots the
differ reports exactly what changed, which generators care, and which output
files have gone stale; the watcher does the same continuously for a live
schema directory.

Architecture overview::

    ┌──────────────┐     ┌──────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ SchemaLoader │────▶│ GenerationPipeline│
    │   (cli.py)   │     │ (loader.py)  │     │  (pipeline.py)   │
    └──────┬───────┘     └──────┬───────┘     └────────┬─────────┘
           │                    │                      │
           ▼                    ▼                      ▼
    ┌──────────────┐     ┌──────────────┐     ┌──────────────────┐
    │   Watcher    │────▶│ SchemaDiffer │────▶│ DependencyGraph  │
    │ (watcher.py) │     │ (differ.py)  │     │(dependency_graph)│
    └──────────────┘     └──────────────┘     └──────────────────┘

Usage::

    # As a library
    from zenogen import SchemaLoader, GenerationPipeline
    schemas = SchemaLoader().load("./zeno")
    result = GenerationPipeline().register(MyGenerator()).generate(schemas)

    # From the command line
    python -m zenogen generate --schema-dir ./zeno --output-dir ./src

Public API:
    - SchemaLoader        — Reads and validates a schema directory
    - GenerationPipeline  — Generator registry and runner
    - Generator           — Base class for generator plugins
    - SchemaDiffer        — Snapshot comparison
    - GenerationDependencyGraph — Change-to-output mapping
    - Watcher             — Debounced schema directory watcher
    - FileExporter        — File-system writer
"""

from __future__ import annotations

__version__: str = "0.1.0"
__author__: str = "Zeno Team"
__license__: str = "MIT"

from zenogen.errors import (
    ConfigurationError,
    FileSystemError,
    GenerationError,
    IncrementalGenerationNotImplemented,
    SchemaValidationError,
    WatcherError,
    ZenoError,
)
from zenogen.models import (
    AffectedFile,
    AppSchema,
    ChangeType,
    EntitySchema,
    EnumSchema,
    FieldChange,
    FieldChangeType,
    GeneratedFile,
    GeneratorContext,
    PageSchema,
    SchemaChange,
    SchemaDiffResult,
    SchemaSet,
    SchemaType,
)
from zenogen.validators import ValidationError, ValidationResult, validate_schema_set
from zenogen.loader import SchemaLoader, create_schema_loader
from zenogen.generator import Generator, SupportedSchemas
from zenogen.pipeline import (
    GenerationOptions,
    GenerationPipeline,
    GenerationResult,
    create_pipeline,
)
from zenogen.dependency_graph import GenerationDependencyGraph, create_dependency_graph
from zenogen.differ import SchemaDiffer, create_schema_differ
from zenogen.watcher import (
    ChangeMessage,
    ErrorMessage,
    ReadyMessage,
    Watcher,
    WatchOptions,
    create_watcher,
)
from zenogen.config import ZenoConfig, load_config, resolve_config
from zenogen.templates import TemplateEngine, create_template_engine
from zenogen.exporters import ExportManifest, ExportResult, FileExporter
from zenogen.utils import Timer

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Errors
    "ZenoError",
    "SchemaValidationError",
    "GenerationError",
    "IncrementalGenerationNotImplemented",
    "WatcherError",
    "ConfigurationError",
    "FileSystemError",
    # Models
    "SchemaType",
    "ChangeType",
    "FieldChangeType",
    "EntitySchema",
    "EnumSchema",
    "PageSchema",
    "AppSchema",
    "SchemaSet",
    "GeneratedFile",
    "GeneratorContext",
    "FieldChange",
    "SchemaChange",
    "AffectedFile",
    "SchemaDiffResult",
    # Validation & loading
    "ValidationError",
    "ValidationResult",
    "validate_schema_set",
    "SchemaLoader",
    "create_schema_loader",
    # Generation
    "Generator",
    "SupportedSchemas",
    "GenerationOptions",
    "GenerationPipeline",
    "GenerationResult",
    "create_pipeline",
    # Incremental
    "GenerationDependencyGraph",
    "create_dependency_graph",
    "SchemaDiffer",
    "create_schema_differ",
    "Watcher",
    "WatchOptions",
    "ReadyMessage",
    "ChangeMessage",
    "ErrorMessage",
    "create_watcher",
    # Configuration
    "ZenoConfig",
    "load_config",
    "resolve_config",
    # Templates & export
    "TemplateEngine",
    "create_template_engine",
    "FileExporter",
    "ExportManifest",
    "ExportResult",
    # Utilities
    "Timer",
]
