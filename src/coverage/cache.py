"""
Coverage Snapshot Cache

Process-local TTL cache for coverage snapshots, passed into the reporter
so tests can inject a clock instead of waiting on wall-clock time.

Expired entries stay readable as "stale" so the reporter can degrade to
the last good snapshot when a refresh fails.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from cachetools import TLRUCache

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class _Entry:
    value: Any
    ttl: float


class CoverageCache:
    """TTL cache exposing get(key) -> (value, fresh) and set(key, value, ttl)."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        maxsize: int = 32,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._fresh = TLRUCache(maxsize=maxsize, ttu=self._expires_at, timer=timer)
        self._last_good: dict[Hashable, Any] = {}

    @staticmethod
    def _expires_at(key: Hashable, entry: _Entry, now: float) -> float:
        return now + entry.ttl

    def get(self, key: Hashable) -> tuple[Any, bool]:
        """
        Look up a cached value.

        Returns (value, True) while within TTL, (value, False) once expired,
        and (None, False) if the key was never set.
        """
        entry = self._fresh.get(key)
        if entry is not None:
            return entry.value, True
        if key in self._last_good:
            return self._last_good[key], False
        return None, False

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        self._fresh[key] = _Entry(value=value, ttl=self.ttl if ttl is None else ttl)
        self._last_good[key] = value

    def clear(self) -> None:
        self._fresh.clear()
        self._last_good.clear()
