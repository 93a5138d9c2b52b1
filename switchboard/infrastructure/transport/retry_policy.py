"""Retry policy for outbound delivery: exponential backoff with a delay cap."""

from __future__ import annotations

import httpx
import redis.asyncio as redis

from switchboard.core.config import Settings


class RetryPolicy:
    """Exponential backoff for transport attempts.

    Example:
        policy = RetryPolicy(max_attempts=3)
        delay = policy.calculate_delay(attempt=1)  # 0.5
    """

    INITIAL_DELAY_SECONDS = 0.5
    BACKOFF_FACTOR = 2.0
    MAX_DELAY_SECONDS = 10.0
    MAX_ATTEMPTS = 3

    RETRYABLE_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})

    def __init__(
        self,
        initial_delay_seconds: float = INITIAL_DELAY_SECONDS,
        backoff_factor: float = BACKOFF_FACTOR,
        max_delay_seconds: float = MAX_DELAY_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.initial_delay_seconds = initial_delay_seconds
        self.backoff_factor = backoff_factor
        self.max_delay_seconds = max_delay_seconds
        self.max_attempts = max_attempts

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            initial_delay_seconds=settings.delivery_initial_backoff_seconds,
            backoff_factor=settings.delivery_backoff_multiplier,
            max_delay_seconds=settings.delivery_max_backoff_seconds,
            max_attempts=settings.delivery_max_attempts,
        )

    def calculate_delay(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)."""
        delay = self.initial_delay_seconds * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_delay_seconds)

    def is_retryable(self, error: Exception) -> bool:
        """Network errors, timeouts and 408/425/429/5xx responses are retried."""
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code in self.RETRYABLE_STATUS_CODES
        if isinstance(error, (httpx.TransportError, redis.ConnectionError, redis.TimeoutError)):
            return True
        return isinstance(error, (TimeoutError, ConnectionError))

    def should_retry(self, attempt: int, error: Exception) -> bool:
        if attempt >= self.max_attempts:
            return False
        return self.is_retryable(error)
