"""File system monitoring for squad folder changes."""

import fnmatch
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300


class DebouncedChangeHandler(FileSystemEventHandler):
    """Collapses a burst of matching file events into a single callback.

    The callback takes no arguments: consumers re-read everything, so the
    individual paths and event kinds are not reported.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        patterns: list[str],
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ):
        super().__init__()
        if debounce_ms < 0:
            raise ValueError("debounce_ms must be >= 0")
        self.callback = callback
        self.patterns = patterns
        self.debounce_ms = debounce_ms
        self._debounce_timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def _matches_pattern(self, path: Path) -> bool:
        """Check if path matches any of the watched patterns."""
        return any(fnmatch.fnmatch(path.name, pattern) for pattern in self.patterns)

    def _handle_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        paths = [Path(event.src_path)]
        dest = getattr(event, "dest_path", None)
        if dest:
            paths.append(Path(dest))
        if not any(self._matches_pattern(p) for p in paths):
            return

        with self._lock:
            if self._debounce_timer:
                self._debounce_timer.cancel()
            self._debounce_timer = threading.Timer(
                self.debounce_ms / 1000.0,
                self._fire,
            )
            self._debounce_timer.daemon = True
            self._debounce_timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._debounce_timer = None
        try:
            self.callback()
        except Exception:
            logger.exception("Change callback failed")

    def cancel(self) -> None:
        """Drop any pending notification."""
        with self._lock:
            if self._debounce_timer:
                self._debounce_timer.cancel()
                self._debounce_timer = None

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle_event(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle_event(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._handle_event(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._handle_event(event)


class SquadWatcher:
    """Watches a squad folder for Markdown changes.

    Usage:
        watcher = SquadWatcher(squad_dir, on_change=provider.refresh)
        watcher.start()
        # ... later
        watcher.stop()
    """

    def __init__(
        self,
        squad_dir: Path,
        on_change: Callable[[], None],
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        patterns: list[str] | None = None,
    ):
        self.squad_dir = squad_dir
        self.handler = DebouncedChangeHandler(
            callback=on_change,
            patterns=patterns or ["*.md"],
            debounce_ms=debounce_ms,
        )
        self._observer: Observer | None = None
        self._running = False

    def start(self) -> None:
        """Start watching for changes. A missing folder is logged and ignored."""
        if self._running:
            return
        if not self.squad_dir.is_dir():
            logger.warning("Squad folder %s does not exist; not watching", self.squad_dir)
            return
        self._observer = Observer()
        self._observer.schedule(self.handler, str(self.squad_dir), recursive=True)
        self._observer.start()
        self._running = True
        logger.info("Watching %s", self.squad_dir)

    def stop(self) -> None:
        """Stop watching for changes."""
        self.handler.cancel()
        if self._observer and self._running:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._running = False

    def is_running(self) -> bool:
        return self._running

    def __enter__(self) -> "SquadWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
