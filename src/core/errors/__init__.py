"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- FtpClientError hierarchy for typed exceptions
- Classification utilities for ftplib and local filesystem errors
"""

from core.errors.classifiers import (
    # Constants
    INVALID_CREDENTIAL_CODES,
    # Classes
    FtpErrorClassifier,
    # Functions
    reply_code,
)
from core.errors.exceptions import (
    AuthError,
    ConnectionError,
    # Enums
    ErrorCategory,
    FilesystemError,
    # Base classes
    FtpClientError,
    InvalidCredentials,
    SessionStateError,
    TransferError,
    TransientError,
    classify_exception,
    classify_os_error,
    # Classification utilities
    is_transient_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "FtpClientError",
    "ConnectionError",
    "SessionStateError",
    "AuthError",
    "InvalidCredentials",
    "TransientError",
    "TransferError",
    "FilesystemError",
    # Classification utilities
    "is_transient_error",
    "classify_os_error",
    "classify_exception",
    # FTP classifiers
    "INVALID_CREDENTIAL_CODES",
    "FtpErrorClassifier",
    "reply_code",
]
