# File: zenogen/utils.py
"""
Zeno Generator - Utility Functions & Helpers
=============================================
String-case transforms, naive pluralisation, timing, and the safe filesystem
primitives (path-traversal guard, atomic write) used by the loader, the
exporter and the template helpers.

Performance strategy:
- String transforms are wrapped in ``functools.lru_cache`` because templates
  call them for every entity / column on every render.
- Writes go to a temporary sibling file that is then renamed over the target,
  so a crash never leaves a half-written output file behind.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import List, Optional, Tuple, Union

from zenogen.errors import FileSystemError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.utils")

PathLike = Union[str, "os.PathLike[str]"]

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]+")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]+|\d+"
)


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """Split any casing style into lowercase words."""
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    return tuple(w.lower() for w in _SPLIT_WORDS_RE.findall(cleaned) if w)


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("UserProfile")
        'user_profile'
        >>> to_snake_case("blog-post")
        'blog_post'
    """
    return "_".join(_extract_words(name)) if name else ""


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """Convert any string to kebab-case (route segments, CSS classes)."""
    return "-".join(_extract_words(name)) if name else ""


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase.

    Examples:
        >>> to_pascal_case("user_profile")
        'UserProfile'
    """
    return "".join(w.capitalize() for w in _extract_words(name)) if name else ""


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("user_profile")
        'userProfile'
    """
    words: Tuple[str, ...] = _extract_words(name) if name else ()
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


_SIBILANT_ENDINGS: Tuple[str, ...] = ("s", "sh", "ch", "x", "z")


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation, good enough for entity names.

    ``category`` → ``categories``, ``box`` → ``boxes``, ``user`` → ``users``.
    """
    if not name:
        return ""
    lower: str = name.lower()
    if lower.endswith("y") and len(name) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith(_SIBILANT_ENDINGS):
        return name + "es"
    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """Reverse of :func:`to_plural`."""
    if not name:
        return ""
    lower: str = name.lower()
    if lower.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if lower.endswith("es") and len(name) > 2 and lower[:-2].endswith(_SIBILANT_ENDINGS):
        return name[:-2]
    if lower.endswith("s") and not lower.endswith("ss") and len(name) > 1:
        return name[:-1]
    return name


# ---------------------------------------------------------------------------
# Safe path helpers
# ---------------------------------------------------------------------------


def validate_path(file_path: PathLike, working_dir: PathLike) -> Path:
    """
    Resolve *file_path* against *working_dir* and refuse anything that escapes it.

    Raises:
        FileSystemError: ``NULL_BYTE`` or ``PATH_TRAVERSAL``.
    """
    raw: str = os.fspath(file_path)
    if "\0" in raw:
        raise FileSystemError(
            f"Null byte detected in path: {raw!r}", raw, "NULL_BYTE"
        )

    base: Path = Path(working_dir).resolve()
    resolved: Path = (base / raw).resolve()
    try:
        resolved.relative_to(base)
    except ValueError as exc:
        raise FileSystemError(
            f"Path traversal detected: {raw}", raw, "PATH_TRAVERSAL", exc
        ) from exc
    return resolved


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create *path* (and parents) if it doesn't exist."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(
            f"Failed to create directory: {path}", str(path), "MKDIR_FAILED", exc
        ) from exc


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*, returning the number of bytes written.

    When *atomic* is True the data lands in a temporary sibling first and is
    moved into place with ``os.replace``.
    """
    ensure_directory(path.parent)
    encoded: bytes = content.encode("utf-8")

    try:
        if atomic:
            fd, tmp_name = tempfile.mkstemp(
                dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(encoded)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        else:
            path.write_bytes(encoded)
    except OSError as exc:
        raise FileSystemError(
            f"Failed to write file: {path}", str(path), "WRITE_FAILED", exc
        ) from exc

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def read_file(path: Path) -> str:
    """Read a UTF-8 text file, wrapping OS errors in ``FileSystemError``."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileSystemError(
            f"Failed to read file: {path}", str(path), "READ_FAILED", exc
        ) from exc


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (0 if content.endswith("\n") else 1)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling engine steps.

    Usage:
        with Timer("load schemas") as t:
            ...
        print(t.elapsed_ms)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000.0

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_snake_case",
    "to_kebab_case",
    "to_pascal_case",
    "to_camel_case",
    "to_plural",
    "to_singular",
    "validate_path",
    "ensure_directory",
    "write_file",
    "read_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]
