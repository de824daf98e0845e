"""
Unified exception hierarchy for the FTP client.

Provides typed exceptions with retry classification so that the session,
fetch and download layers can tell recoverable conditions from terminal ones.
"""

import errno

# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from core.types import ErrorCategory


class FtpClientError(Exception):
    """
    Base exception for all FTP client errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.UNKNOWN,
        )

    @property
    def reply(self) -> str | None:
        """Server reply line that caused the error, if any."""
        return self.context.get("reply")

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Connection / Session Errors
# =============================================================================


class ConnectionError(FtpClientError):
    """Control connection could not be established."""

    category = ErrorCategory.TRANSIENT


class SessionStateError(FtpClientError):
    """Operation issued while the session is in the wrong state."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthError(FtpClientError):
    """Login failed for a reason other than rejected credentials."""

    category = ErrorCategory.AUTH


class InvalidCredentials(AuthError):
    """Server rejected the username/password pair."""

    pass


# =============================================================================
# Transfer Errors
# =============================================================================


class TransientError(FtpClientError):
    """Recoverable negative completion; the transfer itself has not failed."""

    category = ErrorCategory.TRANSIENT


class TransferError(FtpClientError):
    """Terminal protocol error during a listing or a transfer."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Local Filesystem Errors
# =============================================================================


class FilesystemError(FtpClientError):
    """Local directory creation, open, rename or write failure."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        if isinstance(cause, OSError):
            self.category = classify_os_error(cause)
        else:
            self.category = ErrorCategory.PERMANENT


# =============================================================================
# Error Classification Utilities
# =============================================================================

# Markers for string-based detection (fallback for non-FtpClientError exceptions)
TRANSIENT_ERROR_MARKERS = frozenset(
    {
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily",
        "try again",
    }
)


def is_transient_error(exc: Exception) -> bool:
    """
    Check if exception is transient (retriable).

    Returns True if this is a transient error that may succeed on retry.
    """
    if isinstance(exc, FtpClientError):
        return exc.category == ErrorCategory.TRANSIENT

    error_str = str(exc).lower()
    return any(marker in error_str for marker in TRANSIENT_ERROR_MARKERS)


def classify_os_error(error: OSError) -> ErrorCategory:
    """
    Classify OSError by errno into error category.

    Conservative classification: only mark as PERMANENT if certain.
    Disk full (ENOSPC), read-only filesystem (EROFS), permission denied (EACCES/EPERM).
    """
    permanent_errnos = (errno.ENOSPC, errno.EROFS, errno.EACCES, errno.EPERM)
    return ErrorCategory.PERMANENT if error.errno in permanent_errnos else ErrorCategory.TRANSIENT


def classify_exception(exc: Exception) -> ErrorCategory:
    """Classify an exception into error category."""
    if isinstance(exc, FtpClientError):
        return exc.category

    if isinstance(exc, TimeoutError):
        return ErrorCategory.TRANSIENT

    if is_transient_error(exc):
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "FtpClientError",
    "ConnectionError",
    "SessionStateError",
    "AuthError",
    "InvalidCredentials",
    "TransientError",
    "TransferError",
    "FilesystemError",
    "is_transient_error",
    "classify_os_error",
    "classify_exception",
]
