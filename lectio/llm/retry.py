"""Retry policy for classified Gemini provider failures.

Responsibilities:
- Decide whether a failure is retryable and how long to wait before the next attempt.
- Run provider calls under the retry budget with an injectable sleeper.
- Rewrite the final quota failure into a user-readable daily-limit message.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import sleep
from typing import Callable, TypeVar

from .gemini_client import GeminiProviderError

T = TypeVar("T")

NON_RETRYABLE_FAILURE_KINDS = frozenset({"invalid_api_key", "permission_denied", "invalid_model"})

QUOTA_EXHAUSTED_MESSAGE = (
    "Gemini quota exceeded. If you already waited and it keeps failing, the daily "
    "request quota is likely exhausted; try again later."
)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry budget and wait schedule for provider calls.

    Attributes:
        max_retries: Number of retries after the first attempt.
        backoff_base_seconds: First wait for transient failures, doubled per retry.
        quota_cooldown_seconds: Fixed wait after quota/rate-limit failures.
    """

    max_retries: int = 3
    backoff_base_seconds: float = 2.0
    quota_cooldown_seconds: float = 30.0

    def __post_init__(self) -> None:
        """Validate non-negative retry settings."""

        if self.max_retries < 0:
            raise ValueError("`max_retries` must be >= 0.")
        if self.backoff_base_seconds < 0 or self.quota_cooldown_seconds < 0:
            raise ValueError("Retry wait durations must be >= 0.")

    def is_retryable(self, error: GeminiProviderError) -> bool:
        """Return whether a failure kind may be retried at all."""

        return error.failure_kind not in NON_RETRYABLE_FAILURE_KINDS

    def delay_seconds(self, error: GeminiProviderError, retry_index: int) -> float:
        """Return wait before retry `retry_index` (0-based)."""

        if error.failure_kind == "quota_exceeded":
            return self.quota_cooldown_seconds
        return self.backoff_base_seconds * (2**retry_index)


def call_with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    *,
    sleeper: Callable[[float], None] = sleep,
    on_retry: Callable[[int, float, GeminiProviderError], None] | None = None,
) -> T:
    """Run `operation`, retrying classified provider failures under `policy`.

    Args:
        operation: Zero-argument provider call.
        policy: Retry budget and wait schedule.
        sleeper: Wait function, injectable for tests.
        on_retry: Optional callback receiving `(attempt, delay_seconds, error)`
            before each wait; `attempt` is 1-based.

    Raises:
        GeminiProviderError: The final failure once retries are exhausted, or
            immediately for authentication, permission and model failures.
    """

    retry_index = 0
    while True:
        try:
            return operation()
        except GeminiProviderError as exc:
            if not policy.is_retryable(exc):
                raise
            if retry_index >= policy.max_retries:
                if exc.failure_kind == "quota_exceeded":
                    raise GeminiProviderError(
                        QUOTA_EXHAUSTED_MESSAGE,
                        failure_kind=exc.failure_kind,
                        status_code=exc.status_code,
                        provider_code=exc.provider_code,
                    ) from exc
                raise
            delay = policy.delay_seconds(exc, retry_index)
            retry_index += 1
            if on_retry is not None:
                on_retry(retry_index, delay, exc)
            sleeper(delay)
