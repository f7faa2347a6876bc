"""
tests/test_watcher.py
Tests for zenogen.watcher.

The lifecycle and debounce tests run a real watchdog observer on a
temporary schema directory with a short debounce window, and poll the
watcher's channel with timeouts.
"""

from __future__ import annotations

import copy
import pathlib
import threading
import time
from typing import Iterator, List, Optional, Type

import pytest

from conftest import USERS_ENTITY, write_json
from zenogen.differ import SchemaDiffer
from zenogen.errors import WatcherError
from zenogen.loader import SchemaLoader
from zenogen.models import ChangeType, SchemaType
from zenogen.watcher import (
    ChangeMessage,
    ErrorMessage,
    ReadyMessage,
    WatchChannel,
    Watcher,
    WatcherState,
    WatchMessage,
    WatchOptions,
    create_watcher,
)

DEBOUNCE_MS = 150
WAIT_SECONDS = 5.0
QUIET_SECONDS = 0.6


def _next(channel: WatchChannel, kind: Type, timeout: float = WAIT_SECONDS) -> Optional[WatchMessage]:
    """First message of *kind* within *timeout*, skipping everything else."""
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return None
        message = channel.receive(timeout=remaining)
        if message is None:
            return None
        if isinstance(message, kind):
            return message


def _drain(channel: WatchChannel, seconds: float) -> List[WatchMessage]:
    messages: List[WatchMessage] = []
    deadline = time.monotonic() + seconds
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return messages
        message = channel.receive(timeout=remaining)
        if message is None:
            return messages
        messages.append(message)


def _entity(table_name: str) -> dict:
    data = copy.deepcopy(USERS_ENTITY)
    data["tableName"] = table_name
    return data


@pytest.fixture()
def watcher(schema_dir: pathlib.Path) -> Iterator[Watcher]:
    write_json(schema_dir / "entities" / "tags.json", _entity("tags"))
    instance = create_watcher(
        schema_dir,
        WatchOptions(debounce_ms=DEBOUNCE_MS, ignored=("**/drafts*.json",)),
    )
    instance.start()
    assert isinstance(_next(instance.channel, ReadyMessage), ReadyMessage)
    # Give the observer a moment before the first write.
    time.sleep(0.1)
    yield instance
    instance.stop()


# ===========================================================================
# Lifecycle
# ===========================================================================


class TestLifecycle:

    def test_ready_and_state(self, watcher: Watcher, schema_dir: pathlib.Path) -> None:
        assert watcher.state == WatcherState.WATCHING
        assert watcher.watching
        assert watcher.watched_directory == str(schema_dir)
        assert watcher.snapshot is not None
        assert sorted(watcher.snapshot.entities) == ["tags", "users"]

    def test_double_start_rejected(self, watcher: Watcher) -> None:
        with pytest.raises(WatcherError, match="already running"):
            watcher.start()

    def test_initial_load_failure(self, tmp_path: pathlib.Path) -> None:
        instance = Watcher(tmp_path / "missing")
        with pytest.raises(WatcherError, match="Failed to load initial schemas"):
            instance.start()
        assert instance.state == WatcherState.STOPPED

    def test_stop_closes_channel(self, watcher: Watcher) -> None:
        channel = watcher.channel
        watcher.stop()
        assert watcher.state == WatcherState.STOPPED
        assert channel.closed
        assert channel.receive(timeout=0.1) is None
        # Second stop is harmless.
        watcher.stop()

    def test_restart_gets_fresh_channel(self, watcher: Watcher) -> None:
        old_channel = watcher.channel
        watcher.stop()
        watcher.start()
        assert watcher.channel is not old_channel
        assert isinstance(_next(watcher.channel, ReadyMessage), ReadyMessage)

    def test_context_manager(self, schema_dir: pathlib.Path) -> None:
        with Watcher(schema_dir, WatchOptions(debounce_ms=DEBOUNCE_MS)) as instance:
            assert instance.watching
        assert instance.state == WatcherState.STOPPED


# ===========================================================================
# Change detection
# ===========================================================================


class TestChanges:

    def test_rapid_writes_are_debounced(self, watcher: Watcher, schema_dir: pathlib.Path) -> None:
        target = schema_dir / "entities" / "users.json"
        for i in range(5):
            write_json(target, {**USERS_ENTITY, "displayName": f"Users {i}"})
            time.sleep(0.02)

        message = _next(watcher.channel, ChangeMessage)
        assert isinstance(message, ChangeMessage)
        assert not message.degraded
        assert [(c.change_type, c.schema_type, c.name) for c in message.changes] == [
            (ChangeType.UPDATED, SchemaType.ENTITY, "users")
        ]
        assert message.changes[0].field_changes[0].new_value == "Users 4"
        assert not [m for m in _drain(watcher.channel, QUIET_SECONDS) if isinstance(m, ChangeMessage)]

    def test_created_entity(self, watcher: Watcher, schema_dir: pathlib.Path) -> None:
        write_json(schema_dir / "entities" / "posts.json", _entity("posts"))
        message = _next(watcher.channel, ChangeMessage)
        assert isinstance(message, ChangeMessage)
        change = message.changes[0]
        assert (change.change_type, change.schema_type, change.name) == (
            ChangeType.CREATED,
            SchemaType.ENTITY,
            "posts",
        )
        assert message.diff is not None
        assert "src/models/posts.ts" in [f.path for f in message.diff.affected_files]
        assert "posts" in watcher.snapshot.entities

    def test_deleted_entity(self, watcher: Watcher, schema_dir: pathlib.Path) -> None:
        (schema_dir / "entities" / "tags.json").unlink()
        message = _next(watcher.channel, ChangeMessage)
        assert isinstance(message, ChangeMessage)
        change = message.changes[0]
        assert (change.change_type, change.schema_type, change.name) == (
            ChangeType.DELETED,
            SchemaType.ENTITY,
            "tags",
        )
        assert message.diff is not None and message.diff.has_breaking_changes

    def test_non_schema_files_ignored(self, watcher: Watcher, schema_dir: pathlib.Path) -> None:
        (schema_dir / "entities" / "notes.txt").write_text("hello", encoding="utf-8")
        write_json(schema_dir / "entities" / "drafts-posts.json", _entity("posts"))
        write_json(schema_dir / "entities" / "nested" / "posts.json", _entity("posts"))
        assert _drain(watcher.channel, QUIET_SECONDS + DEBOUNCE_MS / 1000.0) == []

    def test_reload_failure_keeps_snapshot(
        self, watcher: Watcher, schema_dir: pathlib.Path
    ) -> None:
        before = watcher.snapshot
        target = schema_dir / "enums" / "status.json"
        target.write_text("{ not json", encoding="utf-8")

        error = _next(watcher.channel, ErrorMessage)
        assert isinstance(error, ErrorMessage)
        assert "Invalid JSON syntax" in str(error.error)
        assert watcher.snapshot is before

        write_json(target, {"values": {"ACTIVE": {"label": "On"}, "INACTIVE": {"label": "Off"}}})
        message = _next(watcher.channel, ChangeMessage)
        assert isinstance(message, ChangeMessage)
        assert [c.name for c in message.changes] == ["status"]
        assert watcher.snapshot is not before


# ===========================================================================
# Flush cycle edge cases (injected loader / differ, events fed directly)
# ===========================================================================


class GatedLoader(SchemaLoader):
    """Counts loads; the next load after ``block`` is set waits for ``release``."""

    def __init__(self) -> None:
        self.loads = 0
        self.block = threading.Event()
        self.entered = threading.Event()
        self.release = threading.Event()

    def load(self, schema_dir):
        self.loads += 1
        if self.block.is_set():
            self.block.clear()
            self.entered.set()
            self.release.wait(WAIT_SECONDS)
        return super().load(schema_dir)


class ExplodingDiffer(SchemaDiffer):
    def compare_schema_set(self, old, new):
        raise RuntimeError("diff exploded")


class TestFlushCycle:

    @pytest.fixture()
    def loader(self) -> GatedLoader:
        return GatedLoader()

    @pytest.fixture()
    def users_path(self, schema_dir: pathlib.Path) -> str:
        return str(schema_dir / "entities" / "users.json")

    def _started(self, schema_dir: pathlib.Path, **kwargs) -> Watcher:
        instance = Watcher(schema_dir, WatchOptions(debounce_ms=DEBOUNCE_MS), **kwargs)
        instance.start()
        assert isinstance(_next(instance.channel, ReadyMessage), ReadyMessage)
        return instance

    def test_diff_failure_emits_raw_changes(self, schema_dir: pathlib.Path, users_path: str) -> None:
        instance = self._started(schema_dir, differ=ExplodingDiffer())
        try:
            before = instance.snapshot
            instance.handle_file_change(ChangeType.UPDATED, users_path)

            message = _next(instance.channel, ChangeMessage)
            assert isinstance(message, ChangeMessage)
            assert message.degraded
            assert message.diff is None
            assert [(c.change_type, c.name, c.field_changes) for c in message.changes] == [
                (ChangeType.UPDATED, "users", None)
            ]
            assert instance.snapshot is before
        finally:
            instance.stop()

    def test_stop_cancels_pending_timer(
        self, schema_dir: pathlib.Path, loader: GatedLoader, users_path: str
    ) -> None:
        instance = self._started(schema_dir, loader=loader)
        instance.handle_file_change(ChangeType.UPDATED, users_path)
        instance.stop()
        time.sleep(3 * DEBOUNCE_MS / 1000.0)
        assert loader.loads == 1

    def test_event_during_reload_gets_its_own_cycle(
        self, schema_dir: pathlib.Path, loader: GatedLoader, users_path: str
    ) -> None:
        instance = self._started(schema_dir, loader=loader)
        try:
            loader.block.set()
            instance.handle_file_change(ChangeType.UPDATED, users_path)
            assert loader.entered.wait(WAIT_SECONDS)

            instance.handle_file_change(
                ChangeType.UPDATED, str(schema_dir / "enums" / "status.json")
            )
            loader.release.set()

            assert isinstance(_next(instance.channel, ChangeMessage), ChangeMessage)
            assert isinstance(_next(instance.channel, ChangeMessage), ChangeMessage)
            assert loader.loads == 3
        finally:
            instance.stop()

    def test_restart_discards_stale_flush(
        self, schema_dir: pathlib.Path, loader: GatedLoader, users_path: str
    ) -> None:
        instance = self._started(schema_dir, loader=loader)
        try:
            loader.block.set()
            instance.handle_file_change(ChangeType.UPDATED, users_path)
            assert loader.entered.wait(WAIT_SECONDS)

            instance.stop()
            instance.start()
            assert isinstance(_next(instance.channel, ReadyMessage), ReadyMessage)
            restarted = instance.snapshot

            loader.release.set()
            assert _drain(instance.channel, QUIET_SECONDS) == []
            assert loader.loads == 3
            assert instance.snapshot is restarted
        finally:
            instance.stop()


# ===========================================================================
# Path classification
# ===========================================================================


class TestCreateSchemaChange:

    @pytest.fixture()
    def idle(self, schema_dir: pathlib.Path) -> Watcher:
        return Watcher(schema_dir)

    def test_entity(self, idle: Watcher, schema_dir: pathlib.Path) -> None:
        change = idle.create_schema_change(
            ChangeType.UPDATED, str(schema_dir / "entities" / "users.json")
        )
        assert change is not None
        assert (change.schema_type, change.name) == (SchemaType.ENTITY, "users")
        assert change.field_changes is None

    def test_app(self, idle: Watcher, schema_dir: pathlib.Path) -> None:
        change = idle.create_schema_change(ChangeType.UPDATED, str(schema_dir / "app.json"))
        assert change is not None
        assert (change.schema_type, change.name) == (SchemaType.APP, "app")

    @pytest.mark.parametrize(
        "relative",
        [
            "entities/users.txt",
            "entities/nested/users.json",
            "layouts/main.json",
            "node_modules/pkg/entities/x.json",
            "other.json",
        ],
    )
    def test_rejected(self, idle: Watcher, schema_dir: pathlib.Path, relative: str) -> None:
        assert idle.create_schema_change(ChangeType.CREATED, str(schema_dir / relative)) is None

    def test_outside_root(self, idle: Watcher, tmp_path: pathlib.Path) -> None:
        assert idle.create_schema_change(ChangeType.CREATED, str(tmp_path / "users.json")) is None


class TestWatchChannel:

    def test_send_receive_close(self) -> None:
        channel = WatchChannel()
        assert channel.send(ReadyMessage("zeno"))
        assert channel.receive(timeout=0.1) == ReadyMessage("zeno")
        assert channel.receive(timeout=0.05) is None
        channel.close()
        assert not channel.send(ReadyMessage("zeno"))
        assert list(channel) == []
