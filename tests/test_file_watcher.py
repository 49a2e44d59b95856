"""Tests for squad folder watching."""

import threading
import time

import pytest
from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from squadlens.utils.file_watcher import DebouncedChangeHandler, SquadWatcher


class Counter:
    def __init__(self):
        self.calls = 0
        self.event = threading.Event()

    def __call__(self):
        self.calls += 1
        self.event.set()


class TestDebouncedChangeHandler:
    """Tests for DebouncedChangeHandler."""

    def test_burst_collapses_to_one_callback(self):
        counter = Counter()
        handler = DebouncedChangeHandler(counter, ["*.md"], debounce_ms=50)
        for _ in range(5):
            handler.on_modified(FileModifiedEvent("/squad/log/a.md"))
        assert counter.event.wait(2)
        time.sleep(0.1)
        assert counter.calls == 1

    def test_non_matching_and_directory_events_ignored(self):
        counter = Counter()
        handler = DebouncedChangeHandler(counter, ["*.md"], debounce_ms=10)
        handler.on_created(FileCreatedEvent("/squad/notes.txt"))
        handler.on_modified(DirModifiedEvent("/squad/log"))
        time.sleep(0.1)
        assert counter.calls == 0

    def test_move_into_markdown_name(self):
        counter = Counter()
        handler = DebouncedChangeHandler(counter, ["*.md"], debounce_ms=10)
        handler.on_moved(FileMovedEvent("/squad/.tmp123", "/squad/decisions.md"))
        assert counter.event.wait(2)

    def test_cancel_drops_pending(self):
        counter = Counter()
        handler = DebouncedChangeHandler(counter, ["*.md"], debounce_ms=100)
        handler.on_modified(FileModifiedEvent("/squad/a.md"))
        handler.cancel()
        time.sleep(0.2)
        assert counter.calls == 0

    def test_callback_errors_are_logged(self, caplog):
        def boom():
            raise RuntimeError("nope")

        handler = DebouncedChangeHandler(boom, ["*.md"], debounce_ms=0)
        handler._fire()
        assert "Change callback failed" in caplog.text

    def test_negative_debounce(self):
        with pytest.raises(ValueError):
            DebouncedChangeHandler(lambda: None, ["*.md"], debounce_ms=-1)


class TestSquadWatcher:
    """Tests for SquadWatcher."""

    def test_missing_folder_not_started(self, temp_dir):
        watcher = SquadWatcher(temp_dir / ".squad", on_change=lambda: None)
        watcher.start()
        assert not watcher.is_running()

    def test_file_change_triggers_callback(self, temp_dir):
        squad_dir = temp_dir / ".squad"
        squad_dir.mkdir()
        counter = Counter()
        with SquadWatcher(squad_dir, on_change=counter, debounce_ms=50) as watcher:
            assert watcher.is_running()
            (squad_dir / "team.md").write_text("# Team\n")
            assert counter.event.wait(5)
        assert not watcher.is_running()
