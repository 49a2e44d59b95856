"""Process-wide provider used by the API routes."""

import logging
import threading

from ..core.provider import SquadDataProvider
from ..core.settings import SquadSettings

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_provider: SquadDataProvider | None = None


def get_provider() -> SquadDataProvider:
    """Return the shared provider, creating it from the environment on first use."""
    global _provider
    with _lock:
        if _provider is None:
            settings = SquadSettings.from_env()
            _provider = SquadDataProvider.from_settings(settings)
            logger.info("Serving squad data from %s", _provider.squad_dir)
        return _provider


def set_provider(provider: SquadDataProvider | None) -> None:
    """Replace the shared provider (``None`` resets to lazy creation)."""
    global _provider
    with _lock:
        _provider = provider


_watcher = None


def start_watching(provider: SquadDataProvider) -> None:
    """Refresh the provider whenever Markdown under its squad folder changes."""
    from ..utils.file_watcher import SquadWatcher

    global _watcher
    stop_watching()
    watcher = SquadWatcher(
        provider.squad_dir,
        on_change=provider.refresh,
        debounce_ms=provider.settings.watch_debounce_ms,
    )
    watcher.start()
    with _lock:
        _watcher = watcher


def stop_watching() -> None:
    global _watcher
    with _lock:
        watcher, _watcher = _watcher, None
    if watcher is not None:
        watcher.stop()


def is_watching() -> bool:
    with _lock:
        return _watcher is not None
