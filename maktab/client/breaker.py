# maktab/client/breaker.py
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TRIP_DURATION_SECONDS = 5.0


class CircuitBreaker:
    """
    One "offline until" timestamp for a whole client.

    While the clock is before ``offline_until`` the dispatcher makes no network
    attempt. There is no reset call: the breaker closes again on its own once
    the timestamp has passed.
    """

    def __init__(self, trip_duration: float = TRIP_DURATION_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.trip_duration = trip_duration
        self._clock = clock
        self._offline_until = 0.0
        self._lock = threading.Lock()

    @property
    def offline_until(self) -> float:
        return self._offline_until

    def should_short_circuit(self) -> bool:
        with self._lock:
            return self._offline_until > 0 and self._clock() < self._offline_until

    def trip(self, duration: Optional[float] = None):
        """Refuses traffic for ``duration`` seconds. Concurrent trips: last write wins."""
        duration = self.trip_duration if duration is None else duration
        with self._lock:
            self._offline_until = self._clock() + duration
        logger.warning(f"No backend reachable; suspending requests for {duration:.1f}s.")
