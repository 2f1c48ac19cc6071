"""Throttle and polling intervals for section generation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GenerationTimings:
    """Waits applied between sub-chunk calls and while paused.

    Attributes:
        free_tier_wait_seconds: Base wait between sub-chunks on rate-limited keys.
        paid_tier_wait_seconds: Base wait between sub-chunks on unrestricted keys.
        optimize_extra_wait_seconds: Extra wait added when optimization is enabled.
        pause_poll_seconds: Poll interval while a run is paused.
        paid_tier: Whether the credential is on an unrestricted tier.
    """

    free_tier_wait_seconds: float = 12.0
    paid_tier_wait_seconds: float = 0.5
    optimize_extra_wait_seconds: float = 4.0
    pause_poll_seconds: float = 0.5
    paid_tier: bool = False

    def __post_init__(self) -> None:
        """Validate that every interval is non-negative and polling is positive."""

        for name in (
            "free_tier_wait_seconds",
            "paid_tier_wait_seconds",
            "optimize_extra_wait_seconds",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"`{name}` must be >= 0.")
        if self.pause_poll_seconds <= 0:
            raise ValueError("`pause_poll_seconds` must be > 0.")

    def throttle_seconds(self, optimizing: bool) -> float:
        """Return the wait between two consecutive sub-chunk calls."""

        base = self.paid_tier_wait_seconds if self.paid_tier else self.free_tier_wait_seconds
        if optimizing:
            return base + self.optimize_extra_wait_seconds
        return base
