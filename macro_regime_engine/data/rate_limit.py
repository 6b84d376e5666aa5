"""Request rate limiting for upstream calls."""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable


logger = logging.getLogger(__name__)


@dataclass
class RateLimiter:
    """
    Thread-safe limiter allowing at most one dispatch per interval.

    Callers that arrive early block until their slot; nothing is dropped.
    Concurrent callers are serialized by the lock, so they queue rather
    than burst.

    Attributes:
        min_interval: Minimum seconds between two dispatches
    """

    min_interval: float = 0.5
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep
    _last_dispatch: float | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def acquire(self) -> float:
        """
        Wait for the next dispatch slot.

        Returns:
            Seconds spent waiting
        """
        with self._lock:
            waited = 0.0
            if self._last_dispatch is not None:
                elapsed = self.clock() - self._last_dispatch
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    logger.debug(f"Rate limit: waiting {waited:.3f}s")
                    self.sleep(waited)
            self._last_dispatch = self.clock()
            return waited

    @property
    def last_dispatch(self) -> float | None:
        with self._lock:
            return self._last_dispatch

    def reset(self) -> None:
        """Forget the last dispatch time."""
        with self._lock:
            self._last_dispatch = None
