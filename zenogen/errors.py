# File: zenogen/errors.py
"""
Zeno Generator - Error Taxonomy
================================
Every failure raised by the engine derives from ``ZenoError`` so callers can
catch the whole family with a single clause, while still being able to react
to the specific kind:

    ZenoError
     ├── SchemaValidationError   — load/parse/validation of a schema file
     ├── GenerationError         — generator registration / execution
     │    ├── IncrementalGenerationNotImplemented
     │    └── WatcherError
     ├── ConfigurationError      — configuration discovery / validation
     └── FileSystemError         — unsafe paths, failed reads / writes

Each error carries the context needed to point a user at the offending file.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ZenoError(Exception):
    """Base class for all zenogen errors."""


class SchemaValidationError(ZenoError):
    """
    Raised when a schema file cannot be loaded or fails validation.

    ``errors`` holds the complete ``ValidationResult`` when the failure came
    from the validator, so callers can report every problem and not just the
    first one.
    """

    def __init__(
        self,
        message: str,
        file_path: str,
        line_number: Optional[int] = None,
        errors: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.file_path: str = file_path
        self.line_number: Optional[int] = line_number
        self.errors: Optional[Any] = errors

    def __str__(self) -> str:
        if self.line_number is not None:
            return f"{self.file_path}:{self.line_number}: {self.message}"
        return f"{self.file_path}: {self.message}"


class GenerationError(ZenoError):
    """Raised during generator registration or execution."""

    def __init__(
        self,
        message: str,
        generator_name: str,
        file_path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.generator_name: str = generator_name
        self.file_path: Optional[str] = file_path
        self.context: Dict[str, Any] = context or {}

    def __str__(self) -> str:
        return f"[{self.generator_name}] {self.message}"


class IncrementalGenerationNotImplemented(GenerationError, NotImplementedError):
    """Incremental generation is not available; callers must run a full generate()."""


class WatcherError(GenerationError):
    """Raised when the schema watcher cannot start."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "Watcher", context=context)


class ConfigurationError(ZenoError):
    """Raised when configuration is missing, unreadable or invalid."""

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        property_name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.config_path: Optional[str] = config_path
        self.property_name: Optional[str] = property_name


class FileSystemError(ZenoError):
    """Raised by the safe filesystem helpers."""

    def __init__(
        self,
        message: str,
        file_path: str,
        code: str,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.file_path: str = file_path
        self.code: str = code
        self.original_error: Optional[BaseException] = original_error


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ZenoError",
    "SchemaValidationError",
    "GenerationError",
    "IncrementalGenerationNotImplemented",
    "WatcherError",
    "ConfigurationError",
    "FileSystemError",
]
