"""
Centralized error classification for ftplib operations.

Wraps ftplib and socket exceptions into the typed FtpClientError hierarchy
so callers never see library-specific exception types.
"""

import ftplib
from typing import Optional

from core.errors.exceptions import (
    AuthError,
    ConnectionError,
    FilesystemError,
    FtpClientError,
    InvalidCredentials,
    TransferError,
    TransientError,
)

# Login replies meaning the user/password pair was rejected
INVALID_CREDENTIAL_CODES = frozenset({"430", "530"})


def reply_code(error: Exception) -> Optional[str]:
    """
    Extract the three-digit reply code from an ftplib error.

    ftplib raises its errors with the full server reply line as the only
    argument, e.g. ``error_perm("530 Login incorrect.")``.
    """
    text = str(error).strip()
    code = text[:3]
    if len(code) == 3 and code.isdigit():
        return code
    return None


class FtpErrorClassifier:
    """
    Centralized error classification for FTP operations.

    Provides consistent error categorization for connect, login,
    transfer and local filesystem failures.
    """

    @staticmethod
    def classify_connect_error(
        error: Exception, context: Optional[dict] = None
    ) -> FtpClientError:
        """
        Classify a failure to open the control connection.

        Every failure at this stage is a ConnectionError; the original
        reason is kept as the cause.
        """
        ctx = {"service": "ftp_control"}
        if context:
            ctx.update(context)
        code = reply_code(error)
        if code:
            ctx["reply"] = str(error).strip()

        return ConnectionError(
            f"Could not connect: {error}",
            cause=error,
            context=ctx,
        )

    @staticmethod
    def classify_login_error(
        error: Exception, context: Optional[dict] = None
    ) -> FtpClientError:
        """
        Classify a login failure.

        Returns:
            InvalidCredentials for 530/430 replies, AuthError otherwise
        """
        ctx = {"service": "ftp_control"}
        if context:
            ctx.update(context)

        code = reply_code(error)
        if code:
            ctx["reply"] = str(error).strip()

        if isinstance(error, ftplib.error_perm) and code in INVALID_CREDENTIAL_CODES:
            return InvalidCredentials(
                "Invalid username or password",
                cause=error,
                context=ctx,
            )

        return AuthError(
            f"Authentication failed: {error}",
            cause=error,
            context=ctx,
        )

    @staticmethod
    def classify_transfer_error(
        error: Exception, context: Optional[dict] = None
    ) -> FtpClientError:
        """
        Classify an error raised during a listing or a transfer.

        4xx replies (transient negative completion) and socket timeouts are
        transient; everything else is terminal for the transfer.
        """
        if isinstance(error, FtpClientError):
            if context:
                error.context.update(context)
            return error

        ctx = {"service": "ftp_data"}
        if context:
            ctx.update(context)

        code = reply_code(error)
        if code:
            ctx["reply"] = str(error).strip()

        if isinstance(error, ftplib.error_temp):
            return TransientError(
                f"Transient negative completion: {error}",
                cause=error,
                context=ctx,
            )

        if isinstance(error, TimeoutError):
            return TransientError(
                "Data channel read timed out",
                cause=error,
                context=ctx,
            )

        if isinstance(error, (ftplib.error_perm, ftplib.error_reply, ftplib.error_proto)):
            return TransferError(
                f"Server refused transfer: {error}",
                cause=error,
                context=ctx,
            )

        return TransferError(
            f"Transfer failed: {error}",
            cause=error,
            context=ctx,
        )

    @staticmethod
    def classify_local_error(
        error: OSError, path: str, action: str
    ) -> FilesystemError:
        """Wrap a local OSError, recording the path and the attempted action."""
        return FilesystemError(
            f"Could not {action} {path}: {error.strerror or error}",
            cause=error,
            context={"destination_path": path, "action": action},
        )


__all__ = [
    "INVALID_CREDENTIAL_CODES",
    "FtpErrorClassifier",
    "reply_code",
]
