"""In-memory observation cache with freshness TTL and retention sweep.

Entries are keyed by the rounded coordinate, the queried date range and
the requested field set. Freshness is checked on every read against the
TTL; the periodic sweep only reclaims memory for entries older than the
retention window. The cache lives as long as its owner and is never
persisted.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable

import pandas as pd

if TYPE_CHECKING:
    from regioncast._types import DateRange
    from regioncast.config import Config
    from regioncast.location import Coordinate
    from regioncast.results import Observation

logger = logging.getLogger(__name__)

CacheKey = str


@dataclass
class CacheEntry:
    """A cached observation, the hourly series it was built from, and the
    monotonic instant the series was fetched.

    Args:
        cache_key: Composite key ``{lat}:{lon}:{start}:{end}:{fields}``.
        observation: The most recently resolved observation for this key.
        series: Hourly values returned by the provider for the key's
            date range.
        created_at: ``time.monotonic()``-style timestamp of the fetch.
    """

    __slots__ = ("cache_key", "observation", "series", "created_at")

    cache_key: CacheKey
    observation: Observation
    series: pd.DataFrame
    created_at: float


@dataclass
class CacheStatus:
    """Summary statistics for the cache.

    Example:
        >>> ObservationCache(config=Config()).status()
        CacheStatus(entry_count=0, fresh_count=0, oldest_age_seconds=0.0)
    """

    __slots__ = ("entry_count", "fresh_count", "oldest_age_seconds")

    entry_count: int
    fresh_count: int
    oldest_age_seconds: float


class ObservationCache:
    """Thread-safe TTL cache of resolved observations.

    Reads and writes are serialized by a lock, so concurrent resolutions
    for different keys never interfere and concurrent stores for the
    same key end with the last write.

    Cache methods **never raise exceptions** to callers.

    Args:
        config: Supplies ``cache_ttl_seconds``, ``cache_retention_seconds``
            and ``coordinate_precision``.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        config: Config,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = config.cache_ttl_seconds
        self._retention = config.cache_retention_seconds
        self._precision = config.coordinate_precision
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def retention(self) -> float:
        return self._retention

    def build_key(
        self,
        coordinate: Coordinate,
        date_range: DateRange,
        fields: Iterable[str],
    ) -> CacheKey:
        """Build a deterministic composite cache key.

        Example:
            >>> cache.build_key(Coordinate(20.0, 78.0),
            ...                 ("2025-08-05", "2025-08-05"), ["precipitation"])
            '20.000:78.000:2025-08-05:2025-08-05:precipitation'
        """
        p = self._precision
        return (
            f"{coordinate.lat:.{p}f}:{coordinate.lon:.{p}f}"
            f":{date_range[0]}:{date_range[1]}:{','.join(fields)}"
        )

    def get_entry(self, cache_key: CacheKey) -> CacheEntry | None:
        """Return the entry for *cache_key* if it is younger than the TTL."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(cache_key)
        if entry is None:
            return None
        age = now - entry.created_at
        if age >= self._ttl:
            logger.debug("Cache entry %s is stale (%.1fs old)", cache_key, age)
            return None
        logger.debug("Cache hit for %s (%.1fs old)", cache_key, age)
        return entry

    def get(self, cache_key: CacheKey) -> Observation | None:
        """Return the cached observation if it is younger than the TTL."""
        entry = self.get_entry(cache_key)
        return None if entry is None else entry.observation

    def store(
        self,
        cache_key: CacheKey,
        observation: Observation,
        series: pd.DataFrame,
        created_at: float | None = None,
    ) -> None:
        """Store *observation*, replacing any entry under the same key.

        Args:
            cache_key: Key from :meth:`build_key`.
            observation: Observation to return on fresh hits.
            series: Hourly series the observation was built from.
            created_at: Age origin of the entry; defaults to now. Pass the
                original fetch instant when deriving a new observation from
                an already cached series so its freshness is not extended.
        """
        entry = CacheEntry(
            cache_key=cache_key,
            observation=observation,
            series=series,
            created_at=self._clock() if created_at is None else created_at,
        )
        with self._lock:
            self._entries[cache_key] = entry
        logger.debug("Cached observation under %s", cache_key)

    def purge(self) -> int:
        """Remove entries older than the retention window.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, entry in self._entries.items()
                if now - entry.created_at > self._retention
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Cache sweep removed %d entries", len(expired))
        return len(expired)

    async def sweep_forever(self, interval: float) -> None:
        """Purge old entries every *interval* seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.purge()

    def status(self) -> CacheStatus:
        """Return summary statistics for the cache."""
        now = self._clock()
        with self._lock:
            ages = [now - entry.created_at for entry in self._entries.values()]
        return CacheStatus(
            entry_count=len(ages),
            fresh_count=sum(1 for age in ages if age < self._ttl),
            oldest_age_seconds=max(ages, default=0.0),
        )

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()
        logger.debug("Cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
