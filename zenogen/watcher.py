# File: zenogen/watcher.py
"""
Zeno Generator - Schema Watcher
================================
Watches a schema directory and publishes diff-enriched change batches.

    watchdog events ─► pending map (last write per path wins)
                    ─► debounce timer (default 300 ms, restarted per event)
                    ─► flush: reload ─► diff vs snapshot ─► ChangeMessage

Messages are delivered on a ``WatchChannel``:

    ReadyMessage   the observer is running
    ChangeMessage  one per debounce window; ``degraded`` marks raw,
                   non-diffed changes (only when diffing itself failed)
    ErrorMessage   the reload failed; the previous snapshot is kept

Cycles are serialized.  The pending map is swapped out under the lock
before reloading, and events that arrive during a cycle only re-arm the
timer once that cycle has finished.  ``stop()`` cancels a pending timer
but lets an in-flight cycle finish; its message is dropped because the
channel is already closed.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from zenogen.differ import SchemaDiffer
from zenogen.errors import WatcherError
from zenogen.loader import APP_FILE_NAME, SchemaLoader
from zenogen.models import ChangeType, SchemaChange, SchemaDiffResult, SchemaSet, SchemaType

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.watcher")

DEFAULT_DEBOUNCE_MS: int = 300
DEFAULT_IGNORED: Tuple[str, ...] = (
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/*.tmp",
    "**/*.temp",
)

_FOLDER_TYPES: Dict[str, SchemaType] = {
    "entities": SchemaType.ENTITY,
    "enums": SchemaType.ENUM,
    "pages": SchemaType.PAGE,
}


# ---------------------------------------------------------------------------
# Options, state & messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WatchOptions:
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    ignored: Sequence[str] = ()
    ignore_initial: bool = True


class WatcherState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    WATCHING = "watching"


@dataclass(frozen=True)
class ReadyMessage:
    schema_dir: str


@dataclass(frozen=True)
class ChangeMessage:
    changes: Tuple[SchemaChange, ...]
    degraded: bool = False
    diff: Optional[SchemaDiffResult] = None


@dataclass(frozen=True)
class ErrorMessage:
    error: Exception


WatchMessage = Union[ReadyMessage, ChangeMessage, ErrorMessage]

_CLOSED = object()


class WatchChannel:
    """
    Thread-safe, closable message queue between the watcher and its consumer.

    Usage::

        for message in watcher.channel:
            if isinstance(message, ChangeMessage):
                ...
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._lock: threading.Lock = threading.Lock()
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: WatchMessage) -> bool:
        """Enqueue *message*; returns False (and drops it) once closed."""
        with self._lock:
            if self._closed:
                return False
            self._queue.put(message)
            return True

    def receive(self, timeout: Optional[float] = None) -> Optional[WatchMessage]:
        """
        Next message, or ``None`` on timeout or when the channel is closed
        and drained.
        """
        try:
            item: object = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            # Keep the marker for other consumers.
            self._queue.put(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[WatchMessage]:
        while True:
            message: Optional[WatchMessage] = self.receive()
            if message is None:
                return
            yield message


# ---------------------------------------------------------------------------
# watchdog bridge
# ---------------------------------------------------------------------------


class _SchemaEventHandler(FileSystemEventHandler):
    def __init__(self, watcher: "Watcher") -> None:
        super().__init__()
        self._watcher: Watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.handle_file_change(ChangeType.CREATED, os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.handle_file_change(ChangeType.UPDATED, os.fsdecode(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.handle_file_change(ChangeType.DELETED, os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._watcher.handle_file_change(ChangeType.DELETED, os.fsdecode(event.src_path))
        self._watcher.handle_file_change(ChangeType.CREATED, os.fsdecode(event.dest_path))


# ---------------------------------------------------------------------------
# Watcher
# ---------------------------------------------------------------------------


class Watcher:
    """
    Debounced schema watcher.

    States::

        stopped ─start()─► starting ─► watching ─stop()─► stopped
                               │
                               └─ initial load fails ─► stopped (WatcherError)
    """

    def __init__(
        self,
        schema_dir: Union[str, Path],
        options: Optional[WatchOptions] = None,
        loader: Optional[SchemaLoader] = None,
        differ: Optional[SchemaDiffer] = None,
    ) -> None:
        self._schema_dir: Path = Path(schema_dir)
        self.options: WatchOptions = options or WatchOptions()
        self._loader: SchemaLoader = loader or SchemaLoader()
        self._differ: SchemaDiffer = differ or SchemaDiffer()
        self._ignored: Tuple[str, ...] = DEFAULT_IGNORED + tuple(self.options.ignored)

        self._lock: threading.Lock = threading.Lock()
        self._state: WatcherState = WatcherState.STOPPED
        self._snapshot: Optional[SchemaSet] = None
        self._pending: Dict[str, SchemaChange] = {}
        self._timer: Optional[threading.Timer] = None
        self._timer_generation: int = 0
        # Bumped by every start(); results of a flush from an older session are dropped.
        self._session: int = 0
        self._flushing: bool = False
        self._observer: Optional[Observer] = None
        self._root: Path = self._schema_dir.resolve()
        self._channel: WatchChannel = WatchChannel()

    # -- Properties ---------------------------------------------------------

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def watching(self) -> bool:
        return self._state == WatcherState.WATCHING

    @property
    def watched_directory(self) -> str:
        return str(self._schema_dir)

    @property
    def channel(self) -> WatchChannel:
        return self._channel

    @property
    def snapshot(self) -> Optional[SchemaSet]:
        """The last successfully loaded ``SchemaSet``."""
        return self._snapshot

    # -- Lifecycle ----------------------------------------------------------

    def start(self) -> None:
        """
        Load the initial snapshot and begin watching.

        Raises:
            WatcherError: if already started, or if the initial load (or the
                filesystem observer) fails.  The watcher stays stopped.
        """
        with self._lock:
            if self._state != WatcherState.STOPPED:
                raise WatcherError("Watcher is already running")
            self._state = WatcherState.STARTING
        logger.info("Watcher starting on %s", self._schema_dir)

        try:
            snapshot: SchemaSet = self._loader.load(self._schema_dir)
        except Exception as exc:
            self._state = WatcherState.STOPPED
            raise WatcherError(
                f"Failed to load initial schemas: {exc}",
                {"schema_dir": str(self._schema_dir)},
            ) from exc

        self._root = self._schema_dir.resolve()
        observer: Observer = Observer()
        observer.schedule(_SchemaEventHandler(self), str(self._root), recursive=True)
        try:
            observer.start()
        except OSError as exc:
            self._state = WatcherState.STOPPED
            raise WatcherError(
                f"Failed to watch schema directory: {exc}",
                {"schema_dir": str(self._schema_dir)},
            ) from exc

        with self._lock:
            self._snapshot = snapshot
            self._observer = observer
            if self._channel.closed:
                self._channel = WatchChannel()
            self._session += 1
            self._state = WatcherState.WATCHING

        logger.info("Watcher ready (debounce %d ms).", self.options.debounce_ms)
        self._channel.send(ReadyMessage(str(self._schema_dir)))

        if not self.options.ignore_initial:
            for path in self._existing_schema_files():
                self.handle_file_change(ChangeType.CREATED, str(path))

    def stop(self) -> None:
        """Stop watching; always safe to call."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._timer_generation += 1
            self._pending.clear()
            observer: Optional[Observer] = self._observer
            self._observer = None
            was: WatcherState = self._state
            self._state = WatcherState.STOPPED

        if observer is not None:
            observer.stop()
            observer.join(timeout=5.0)
        self._channel.close()
        if was != WatcherState.STOPPED:
            logger.info("Watcher stopped.")

    def __enter__(self) -> "Watcher":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # -- Event intake -------------------------------------------------------

    def handle_file_change(self, change_type: ChangeType, file_path: str) -> None:
        """Record a raw filesystem event and (re)start the debounce timer."""
        change: Optional[SchemaChange] = self.create_schema_change(change_type, file_path)
        if change is None:
            return

        with self._lock:
            if self._state != WatcherState.WATCHING:
                return
            self._pending[change.path] = change
            logger.debug("Pending %s %s (%d queued)", change_type.value, change.path, len(self._pending))
            if not self._flushing:
                self._arm_timer_locked()

    def create_schema_change(
        self, change_type: ChangeType, file_path: str
    ) -> Optional[SchemaChange]:
        """
        Translate a filesystem path into a raw ``SchemaChange``.

        Returns ``None`` for non-JSON files, ignored paths and anything that
        is not a direct child of ``entities/``, ``enums/`` or ``pages/`` or
        the root ``app.json``.
        """
        path: Path = Path(file_path)
        if path.suffix != ".json":
            return None
        try:
            relative: Path = path.resolve().relative_to(self._root)
        except ValueError:
            return None

        rel_posix: str = relative.as_posix()
        if any(fnmatch.fnmatch("/" + rel_posix, pattern) for pattern in self._ignored):
            return None

        parts: Tuple[str, ...] = relative.parts
        if parts == (APP_FILE_NAME,):
            return SchemaChange(change_type, SchemaType.APP, "app", str(path))
        if len(parts) == 2 and parts[0] in _FOLDER_TYPES:
            return SchemaChange(change_type, _FOLDER_TYPES[parts[0]], path.stem, str(path))
        return None

    # -- Debounce & flush ---------------------------------------------------

    def _arm_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer_generation += 1
        timer: threading.Timer = threading.Timer(
            self.options.debounce_ms / 1000.0,
            self._flush,
            args=(self._timer_generation,),
        )
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _flush(self, generation: int) -> None:
        with self._lock:
            # A stale timer, or a cycle already running that will re-arm.
            if generation != self._timer_generation or self._flushing:
                return
            self._timer = None
            if self._state != WatcherState.WATCHING or not self._pending:
                return
            changes: List[SchemaChange] = list(self._pending.values())
            self._pending = {}
            self._flushing = True
            session: int = self._session
            channel: WatchChannel = self._channel

        logger.info("Debounce flush: %d pending change(s).", len(changes))
        try:
            message: WatchMessage = self._refresh(changes, session)
            if self._is_current(session):
                channel.send(message)
            else:
                logger.debug("Dropping result of a flush from a previous watch session.")
        finally:
            with self._lock:
                self._flushing = False
                if self._pending and self._state == WatcherState.WATCHING:
                    self._arm_timer_locked()

    def _is_current(self, session: int) -> bool:
        with self._lock:
            return session == self._session

    def _commit_snapshot(self, session: int, fresh: SchemaSet) -> None:
        with self._lock:
            if session == self._session:
                self._snapshot = fresh

    def _refresh(self, raw_changes: List[SchemaChange], session: int) -> WatchMessage:
        """One reload → diff cycle; the snapshot only moves on full success."""
        try:
            fresh: SchemaSet = self._loader.load(self._schema_dir)
        except Exception as exc:
            logger.warning("Schema reload failed, keeping last good snapshot: %s", exc)
            return ErrorMessage(exc)

        previous: Optional[SchemaSet] = self._snapshot
        if previous is None:
            self._commit_snapshot(session, fresh)
            return ChangeMessage(tuple(raw_changes), degraded=True)

        try:
            diff: SchemaDiffResult = self._differ.compare_schema_set(previous, fresh)
        except Exception as exc:
            logger.error("Schema diff failed, emitting raw changes: %s", exc, exc_info=True)
            return ChangeMessage(tuple(raw_changes), degraded=True)

        self._commit_snapshot(session, fresh)
        return ChangeMessage(tuple(diff.changes), diff=diff)

    def _existing_schema_files(self) -> List[Path]:
        files: List[Path] = []
        for folder in _FOLDER_TYPES:
            directory: Path = self._root / folder
            if directory.is_dir():
                files.extend(sorted(directory.glob("*.json")))
        app: Path = self._root / APP_FILE_NAME
        if app.is_file():
            files.append(app)
        return files


def create_watcher(
    schema_dir: Union[str, Path], options: Optional[WatchOptions] = None
) -> Watcher:
    return Watcher(schema_dir, options)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_DEBOUNCE_MS",
    "DEFAULT_IGNORED",
    "WatchOptions",
    "WatcherState",
    "ReadyMessage",
    "ChangeMessage",
    "ErrorMessage",
    "WatchMessage",
    "WatchChannel",
    "Watcher",
    "create_watcher",
]
