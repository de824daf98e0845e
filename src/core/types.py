"""
Core types shared across modules.

ErrorCategory lives here, apart from the exception hierarchy, so that
errors and retry can both import it without a cycle.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that may succeed on retry
                   (e.g., 4xx FTP replies, data channel read timeouts)
        AUTH: Authentication failures (e.g., 530 Not logged in)
        PERMANENT: Non-retriable failures that won't succeed on retry
                   (e.g., 550 file unavailable, disk full)
        UNKNOWN: Unclassified errors, may retry conservatively
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = [
    "ErrorCategory",
]
