"""
Resilience patterns module.

Components:
    - RetryConfig: Bounded retry with capped exponential backoff
    - RetryStats: Per-run retry bookkeeping
    - TRANSIENT_CHUNK_RETRY: default policy for chunk pulls
"""

from .retry import (
    TRANSIENT_CHUNK_RETRY,
    RetryConfig,
    RetryStats,
)

__all__ = [
    "RetryConfig",
    "RetryStats",
    "TRANSIENT_CHUNK_RETRY",
]
