"""
DebounceGate - cooldown window for target detections

Bounded Context: Detection window state
Responsibilities:
  - Remember when the target was last accepted
  - Decide whether a new sighting falls inside the cooldown window

Threading: Thread-safe. The read-compare-write of the last accepted time
runs under a single lock, so concurrent callers can never both be accepted
inside one window.

State lives in process memory only; a restart opens a fresh window.
"""

import threading
from datetime import timedelta
from typing import Optional, Union


def _seconds(cooldown: Union[timedelta, float, int]) -> float:
    if isinstance(cooldown, timedelta):
        return cooldown.total_seconds()
    return float(cooldown)


class DebounceGate:
    """
    Accepts at most one detection per cooldown interval.

    Timestamps are plain floats from a monotonic clock (seconds).

    Example:
        gate = DebounceGate()
        gate.try_accept(0.0, timedelta(minutes=5))    # True
        gate.try_accept(60.0, timedelta(minutes=5))   # False
        gate.try_accept(301.0, timedelta(minutes=5))  # True
    """

    def __init__(self):
        self._last_accepted_at: Optional[float] = None
        self._accepted = 0
        self._suppressed = 0
        self._lock = threading.Lock()

    def try_accept(self, now: float, cooldown: Union[timedelta, float, int]) -> bool:
        """
        Accept the sighting if the window is open.

        Args:
            now: Current monotonic time in seconds
            cooldown: Minimum gap between accepted detections

        Returns:
            True if accepted (state updated), False if suppressed (state unchanged)
        """
        window = _seconds(cooldown)
        with self._lock:
            last = self._last_accepted_at
            if last is None or now - last >= window:
                self._last_accepted_at = now
                self._accepted += 1
                return True

            self._suppressed += 1
            return False

    @property
    def last_accepted_at(self) -> Optional[float]:
        with self._lock:
            return self._last_accepted_at

    def reset(self) -> None:
        """Forget the last accepted detection."""
        with self._lock:
            self._last_accepted_at = None

    def get_stats(self) -> dict:
        with self._lock:
            return {
                'accepted': self._accepted,
                'suppressed': self._suppressed,
                'last_accepted_at': self._last_accepted_at,
            }
