"""
Data models for session and transfer operations.

- SessionResult: outcome of connect/authenticate, carried explicitly into
  the operations that accept it instead of a handle that may be an error
- TransferOutcome: result of a whole-file fetch or a chunked download
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from core.errors.exceptions import ErrorCategory, FtpClientError

if TYPE_CHECKING:
    from ftpfetch.session import Session


@dataclass
class SessionResult:
    """
    Result of opening or authenticating a session.

    Success case:
        session set, error None

    Failure case:
        session None, error set
    """

    session: Optional["Session"] = None
    error: Optional[FtpClientError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.session is not None

    @classmethod
    def succeeded(cls, session: "Session") -> "SessionResult":
        return cls(session=session)

    @classmethod
    def failed(cls, error: FtpClientError) -> "SessionResult":
        return cls(error=error)


@dataclass
class TransferOutcome:
    """
    Result of a fetch or download operation.

    Success case:
        success=True, bytes_transferred set, error fields None

    Failure case:
        success=False, error, error_message and error_category set.
        local_path is kept so the caller can find a partial chunked download.

    Attributes:
        success: Whether the transfer succeeded
        remote_path: Remote file as requested by the caller
        local_path: Local target path (None if it could not be computed)
        bytes_transferred: Number of bytes written locally (0 on failure)
        backup_path: Where a pre-existing local file was moved, if any
        error: The classified error (None on success)
        error_message: Error description (None on success)
        error_category: Error classification (None on success)
    """

    success: bool
    remote_path: str
    local_path: Optional[str] = None
    bytes_transferred: int = 0
    backup_path: Optional[str] = None
    error: Optional[FtpClientError] = None
    error_message: Optional[str] = None
    error_category: Optional[ErrorCategory] = None

    @classmethod
    def success_outcome(
        cls,
        remote_path: str,
        local_path: str,
        bytes_transferred: int,
        backup_path: Optional[str] = None,
    ) -> "TransferOutcome":
        """
        Create successful transfer outcome.

        Args:
            remote_path: Remote file that was transferred
            local_path: Where it was written
            bytes_transferred: Number of bytes written
            backup_path: Backup of a pre-existing local file, if one was made

        Returns:
            TransferOutcome with success=True
        """
        return cls(
            success=True,
            remote_path=remote_path,
            local_path=local_path,
            bytes_transferred=bytes_transferred,
            backup_path=backup_path,
        )

    @classmethod
    def failure(
        cls,
        remote_path: str,
        error: FtpClientError,
        local_path: Optional[str] = None,
        backup_path: Optional[str] = None,
    ) -> "TransferOutcome":
        """
        Create failed transfer outcome.

        Args:
            remote_path: Remote file that was requested
            error: Classified error
            local_path: Local target path, if known
            backup_path: Backup of a pre-existing local file, if one was made

        Returns:
            TransferOutcome with success=False
        """
        return cls(
            success=False,
            remote_path=remote_path,
            local_path=local_path,
            backup_path=backup_path,
            error=error,
            error_message=str(error),
            error_category=error.category,
        )


__all__ = ["SessionResult", "TransferOutcome"]
