"""Shared utilities for squadlens."""

from .datetime_utils import parse_iso
from .markdown_parser import MarkdownParser


# Lazy import for SquadWatcher to avoid watchdog dependency at import time
def __getattr__(name):
    if name == "SquadWatcher":
        from .file_watcher import SquadWatcher
        return SquadWatcher
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "MarkdownParser",
    "SquadWatcher",
    "parse_iso",
]
