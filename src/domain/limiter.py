"""
Admission limiter - Per-source-address fixed window counter.

Caps submission attempts before any storage access. State is
process-local and not persisted: a restart forgets all windows,
which is acceptable for a single-instance deployment.

Concurrency: the window for a given address is only touched while
holding that address's lock stripe, so one update is atomic and
different addresses rarely contend.
"""

import itertools
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .exceptions import RateLimitError
from .models import Admission

_LOCK_STRIPES = 64


@dataclass
class AdmissionWindow:
    """Attempts counted for one address since started_at."""

    started_at: float
    count: int


class AdmissionLimiter:
    """Fixed-window attempt limiter keyed by source address."""

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: int = 1000,
    ) -> None:
        """
        Args:
            max_attempts: Attempts admitted per window
            window_seconds: Window length
            clock: Monotonic time source (seconds)
            sweep_interval: Evict idle windows every N calls
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._windows: dict[str, AdmissionWindow] = {}
        self._stripes = [threading.Lock() for _ in range(_LOCK_STRIPES)]
        self._calls = itertools.count(1)

    def try_admit(self, source_address: str) -> Admission:
        """
        Count one attempt for source_address.

        Returns:
            Admission(admitted=True) while the window has room, otherwise
            Admission(admitted=False, retry_after=<seconds left in window>)
        """
        with self._lock_for(source_address):
            now = self._clock()
            window = self._windows.get(source_address)
            if window is None or self._elapsed(window, now):
                self._windows[source_address] = AdmissionWindow(started_at=now, count=1)
                admission = Admission(admitted=True)
            else:
                window.count += 1
                if window.count <= self.max_attempts:
                    admission = Admission(admitted=True)
                else:
                    remaining = window.started_at + self.window_seconds - now
                    admission = Admission(admitted=False, retry_after=max(remaining, 0.0))

        if self._should_sweep():
            self.evict_idle()
        return admission

    def check(self, source_address: str) -> None:
        """
        Count one attempt, raising when the window is exhausted.

        Raises:
            RateLimitError: With the seconds left in the current window
        """
        admission = self.try_admit(source_address)
        if not admission.admitted:
            raise RateLimitError(admission.retry_after)

    def evict_idle(self) -> int:
        """Drop elapsed windows. Returns the number evicted."""
        now = self._clock()
        evicted = 0
        for address in list(self._windows):
            with self._lock_for(address):
                window = self._windows.get(address)
                if window is not None and self._elapsed(window, now):
                    del self._windows[address]
                    evicted += 1
        return evicted

    def tracked_addresses(self) -> int:
        return len(self._windows)

    def _elapsed(self, window: AdmissionWindow, now: float) -> bool:
        return now - window.started_at >= self.window_seconds

    def _lock_for(self, source_address: str) -> threading.Lock:
        return self._stripes[hash(source_address) % _LOCK_STRIPES]

    def _should_sweep(self) -> bool:
        return next(self._calls) % self._sweep_interval == 0
