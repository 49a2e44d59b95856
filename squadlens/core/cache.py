"""In-memory TTL caches for derived data and external issues.

Thread-safe: each entry allows one fetch in flight. Concurrent readers wait
for it and then see its result.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Generic, TypeVar

from .errors import IssueSourceError
from .models import Issue, IssueSourceConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL = 300  # seconds


class CacheEntry(Generic[T]):
    """A single cached value with an optional TTL.

    States: empty, fresh, stale. Reading a stale entry discards it and
    fetches again; ``invalidate`` empties it. A fetch that started before an
    ``invalidate`` does not store its result.
    """

    def __init__(self, ttl: float | None = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._fetch_lock = threading.Lock()
        self._value: T | None = None
        self._fetched_at: float | None = None
        self._generation = 0

    @property
    def fetched_at(self) -> float | None:
        return self._fetched_at

    def is_fresh(self) -> bool:
        with self._lock:
            return self._is_fresh_locked()

    def _is_fresh_locked(self) -> bool:
        if self._fetched_at is None:
            return False
        if self.ttl is None:
            return True
        return self._clock() - self._fetched_at <= self.ttl

    def peek(self) -> T | None:
        """Return the value when fresh; a stale value is dropped."""
        with self._lock:
            if self._is_fresh_locked():
                return self._value
            self._value = None
            self._fetched_at = None
            return None

    def get_or_fetch(self, fetch: Callable[[], T], force: bool = False) -> T:
        """Return the fresh value, or call ``fetch`` and store its result.

        Exceptions from ``fetch`` propagate and leave the entry empty.
        """
        with self._fetch_lock:
            if not force:
                value = self.peek()
                if value is not None:
                    logger.debug("Cache hit")
                    return value
            with self._lock:
                generation = self._generation
            logger.debug("Cache miss, fetching")
            value = fetch()
            with self._lock:
                if generation == self._generation:
                    self._value = value
                    self._fetched_at = self._clock()
            return value

    def invalidate(self) -> None:
        with self._lock:
            self._value = None
            self._fetched_at = None
            self._generation += 1


class IssueCache:
    """Open and closed issue caches sharing one issue source.

    Entries are kept per repository, so issues fetched for one repository
    never answer a read for another. A fresh entry is served without
    touching the source. On a miss a source failure is logged and reported
    as an empty list, which is not cached.
    """

    OPEN = "open"
    CLOSED = "closed"

    def __init__(
        self,
        source,
        ttl_seconds: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
        closed_limit: int = 50,
    ):
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl must be positive")
        self.source = source
        self.ttl_seconds = ttl_seconds
        self.closed_limit = closed_limit
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], CacheEntry[list[Issue]]] = {}

    def get_open(self, config: IssueSourceConfig | None, force: bool = False) -> list[Issue]:
        if config is None:
            return []
        return self._load(
            self._entry(self.OPEN, config),
            lambda: self.source.fetch_open(config),
            force,
            self.OPEN,
        )

    def get_closed(self, config: IssueSourceConfig | None, force: bool = False) -> list[Issue]:
        if config is None:
            return []
        return self._load(
            self._entry(self.CLOSED, config),
            lambda: self.source.fetch_closed(config, limit=self.closed_limit),
            force,
            self.CLOSED,
        )

    def invalidate(self) -> None:
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            entry.invalidate()

    def _entry(self, kind: str, config: IssueSourceConfig) -> CacheEntry[list[Issue]]:
        key = (kind, config.effective_repository)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = CacheEntry(self.ttl_seconds, self._clock)
                self._entries[key] = entry
            return entry

    @staticmethod
    def _load(entry: CacheEntry[list[Issue]], fetch, force: bool, kind: str) -> list[Issue]:
        try:
            return entry.get_or_fetch(fetch, force=force)
        except IssueSourceError as exc:
            logger.warning("Failed to fetch %s issues: %s", kind, exc)
            return []
