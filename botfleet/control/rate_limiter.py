"""Sliding-window request throttling per caller identity."""

from __future__ import annotations

from typing import Callable, Dict, List
import time


class RateLimiter:
    """Admit at most `max_requests` per identity within `window_seconds`.

    Parameters
    ----------
    max_requests : int
        Requests admitted inside one window.
    window_seconds : float
        Length of the sliding window.
    clock : callable
        Monotonic time source in seconds; injectable for tests.
    """

    def __init__(self, max_requests: int = 10, window_seconds: float = 60.0,
                 clock: Callable[[], float] = time.monotonic) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._requests: Dict[str, List[float]] = {}

    def _valid(self, identity: str, now: float) -> List[float]:
        return [t for t in self._requests.get(identity, []) if now - t < self.window_seconds]

    def check_limit(self, identity: str) -> bool:
        """Record a request for `identity` and return whether it is admitted.

        Denied requests are not recorded, so a caller that keeps retrying
        is admitted again as soon as its oldest request leaves the window.
        """
        now = self.clock()
        valid = self._valid(identity, now)
        if len(valid) >= self.max_requests:
            self._requests[identity] = valid
            return False
        valid.append(now)
        self._requests[identity] = valid
        return True

    def reset(self, identity: str) -> None:
        self._requests.pop(identity, None)

    def cleanup(self) -> None:
        """Drop expired timestamps and forget identities with none left."""
        now = self.clock()
        for identity in list(self._requests):
            valid = self._valid(identity, now)
            if valid:
                self._requests[identity] = valid
            else:
                del self._requests[identity]

    def tracked_identities(self) -> int:
        return len(self._requests)
