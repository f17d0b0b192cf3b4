"""In-memory TLE cache with a time-to-live.

The cache is an explicit object: callers create it, inject the clock, and
pass it to whatever fetches element sets.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from orbitwatch.core.tle import TLE
from orbitwatch.utils.constants import TLE_CACHE_TTL_S

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CacheEntry:
    tle: TLE
    stored_at: float
    source: str


class TLECache:
    """Map of NORAD ID to TLE whose entries expire after ``ttl_s`` seconds.

    Args:
        ttl_s: Entry lifetime in seconds.
        clock: Seconds source; defaults to ``time.monotonic``.
    """

    def __init__(self, ttl_s: float = TLE_CACHE_TTL_S, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_s <= 0:
            raise ValueError(f"ttl_s must be positive, got {ttl_s}")
        self._ttl_s = ttl_s
        self._clock = clock
        self._entries: dict[int, _CacheEntry] = {}

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    def put(self, norad_id: int, tle: TLE, source: str = "") -> None:
        """Store (or replace) the TLE for a catalog number."""
        self._entries[norad_id] = _CacheEntry(tle=tle, stored_at=self._clock(), source=source)
        logger.debug("Cached TLE for NORAD %d from %s", norad_id, source or "unknown source")

    def _live(self, norad_id: int) -> _CacheEntry | None:
        entry = self._entries.get(norad_id)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self._ttl_s:
            del self._entries[norad_id]
            logger.debug("Evicted expired TLE for NORAD %d", norad_id)
            return None
        return entry

    def get(self, norad_id: int) -> TLE | None:
        """Cached TLE, or None if absent or expired (expired entries are evicted)."""
        entry = self._live(norad_id)
        return entry.tle if entry is not None else None

    def source(self, norad_id: int) -> str | None:
        """Where the cached TLE came from, or None if absent or expired."""
        entry = self._live(norad_id)
        return entry.source if entry is not None else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        """Number of live entries; expired ones are evicted first."""
        for norad_id in list(self._entries):
            self._live(norad_id)
        return len(self._entries)

    def __contains__(self, norad_id: object) -> bool:
        return isinstance(norad_id, int) and self._live(norad_id) is not None
