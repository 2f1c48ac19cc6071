"""Request pacing for provider calls.

Responsibilities:
- Enforce a minimum interval between consecutive requests sharing a key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class RateLimiter:
    """Per-key minimum-interval limiter with injectable clock and sleeper.

    Attributes:
        min_interval_seconds: Minimum spacing between requests for one key.
        clock: Monotonic time source.
        sleeper: Wait function.
    """

    min_interval_seconds: float = 0.3
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _next_allowed_at: dict[str, float] = field(default_factory=dict)

    def acquire(self, key: str = "default") -> float:
        """Block until `key` may issue a request and return the time waited."""

        if self.min_interval_seconds <= 0.0:
            return 0.0
        now = self.clock()
        wait_seconds = self._next_allowed_at.get(key, now) - now
        if wait_seconds > 0.0:
            self.sleeper(wait_seconds)
            now = self.clock()
        else:
            wait_seconds = 0.0
        self._next_allowed_at[key] = now + self.min_interval_seconds
        return wait_seconds
