"""Per-run generation control token.

Responsibilities:
- Hold the pause/cancel flags governing one in-flight section generation.
- Provide a cooperative pause wait observed between sub-chunks.
"""

from __future__ import annotations

import threading
from typing import Callable


class GenerationControl:
    """Pause/cancel flag pair for one generation run.

    Flags are `threading.Event` objects so a signal handler or another thread
    may flip them while the run loop waits.
    """

    def __init__(self) -> None:
        self._paused = threading.Event()
        self._cancelled = threading.Event()

    @property
    def paused(self) -> bool:
        """Return whether the run is currently paused."""

        return self._paused.is_set()

    @property
    def cancelled(self) -> bool:
        """Return whether cancellation was requested."""

        return self._cancelled.is_set()

    def pause(self) -> None:
        """Request a pause before the next sub-chunk."""

        self._paused.set()

    def resume(self) -> None:
        """Clear a pending pause."""

        self._paused.clear()

    def cancel(self) -> None:
        """Request cancellation; observed before the next sub-chunk or while paused."""

        self._cancelled.set()

    def wait_while_paused(self, poll_seconds: float, sleeper: Callable[[float], None]) -> bool:
        """Block while paused and return `False` when cancellation was requested."""

        while self._paused.is_set() and not self._cancelled.is_set():
            sleeper(poll_seconds)
        return not self._cancelled.is_set()
