"""
Retry policy with exception-aware handling.

Uses the exception hierarchy to make retry decisions:
- Transient errors: retry with capped exponential backoff
- Auth, permanent and filesystem errors: fail immediately (no retry)
"""

import random
from dataclasses import dataclass

from core.errors.exceptions import FtpClientError, classify_exception

# Import ErrorCategory from core.types to avoid circular dependency
from core.types import ErrorCategory


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    max_attempts counts the attempts of one run of consecutive failures,
    the first try included. 0 means no bound.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    # If True, don't retry permanent errors even if attempts remain
    respect_permanent: bool = True

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.max_attempts = int(self.max_attempts)
        self.base_delay = float(self.base_delay)
        self.max_delay = float(self.max_delay)
        self.exponential_base = float(self.exponential_base)
        # Keep boolean if already bool, otherwise convert
        # (bool('false') would be True, so we need this check)
        if not isinstance(self.respect_permanent, bool):
            self.respect_permanent = str(self.respect_permanent).lower() in ("1", "true", "yes")

        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays must be >= 0")

    @property
    def unbounded(self) -> bool:
        return self.max_attempts == 0

    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay with equal jitter to prevent thundering herd.

        Args:
            attempt: 0-indexed attempt number

        Returns:
            Delay in seconds
        """
        # Cap the exponent so unbounded retry runs can't overflow the float
        base_delay = self.base_delay * (self.exponential_base ** min(attempt, 32))

        # Apply equal jitter: half fixed, half random
        jitter = random.uniform(0, base_delay / 2)
        delay = (base_delay / 2) + jitter

        return min(delay, self.max_delay)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """
        Determine if error should be retried.

        Args:
            error: The exception that occurred
            attempt: 0-indexed current attempt

        Returns:
            True if should retry
        """
        if not self.unbounded and attempt >= self.max_attempts - 1:
            return False

        if isinstance(error, FtpClientError):
            if self.respect_permanent and not error.is_retryable:
                return False
            return error.category == ErrorCategory.TRANSIENT

        category = classify_exception(error)
        if self.respect_permanent and category == ErrorCategory.PERMANENT:
            return False

        return category == ErrorCategory.TRANSIENT


# Chunk pulls: many short waits, capped so a stalled server is polled every few seconds
TRANSIENT_CHUNK_RETRY = RetryConfig(max_attempts=50, base_delay=0.05, max_delay=5.0)


@dataclass
class RetryStats:
    """Failures in the current run of consecutive transient errors."""

    attempts: int = 0

    def record(self) -> None:
        self.attempts += 1

    def reset(self) -> None:
        self.attempts = 0


__all__ = [
    "RetryConfig",
    "RetryStats",
    "TRANSIENT_CHUNK_RETRY",
]
