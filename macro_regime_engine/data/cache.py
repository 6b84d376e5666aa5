"""Time-boxed in-memory cache for fetched series."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from macro_regime_engine.models import Series


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class CacheEntry:
    series: Series
    stored_at: float


class SeriesCache:
    """
    Thread-safe cache of fetched series keyed by series id.

    Entries expire after ``ttl_seconds``. A store replaces the whole entry
    under the lock, so readers see either the old snapshot or the new one.
    One instance is shared by every fetcher that should see the same snapshots.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, series_id: str) -> Series | None:
        """Return the cached series, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(series_id)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.ttl_seconds:
                # Expired
                del self._entries[series_id]
                return None
            return entry.series

    def put(self, series: Series) -> None:
        """Store a freshly fetched series, replacing any existing entry."""
        entry = CacheEntry(series=series, stored_at=self._clock())
        with self._lock:
            self._entries[series.series_id] = entry

    def invalidate(self, series_id: str) -> None:
        with self._lock:
            self._entries.pop(series_id, None)

    def clear(self) -> None:
        """Clear all cached series."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, series_id: str) -> bool:
        return self.get(series_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_cache_status(self) -> dict[str, dict]:
        """Get status of cached data for each series."""
        now = self._clock()
        with self._lock:
            entries = dict(self._entries)

        status = {}
        for series_id, entry in entries.items():
            series = entry.series
            dates = [obs.date for obs in series.observations]
            status[series_id] = {
                "observation_count": len(series),
                "valid_count": series.valid_count(),
                "first_date": min(dates).isoformat() if dates else None,
                "last_date": max(dates).isoformat() if dates else None,
                "age_seconds": now - entry.stored_at,
                "expired": now - entry.stored_at >= self.ttl_seconds,
            }
        return status
