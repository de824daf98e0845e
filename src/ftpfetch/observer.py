"""
Transfer event observers.

Session, fetch and download code report progress through an injected
TransferObserver instead of logging directly. LoggingObserver is the default
and the only place these events reach the logging module; tests pass a
recording observer or a Mock(spec=TransferObserver).
"""

import logging
from typing import Optional

from core.errors.exceptions import FtpClientError
from core.logging.utilities import log_exception, log_with_context
from ftpfetch.models import TransferOutcome

logger = logging.getLogger(__name__)


class TransferObserver:
    """Receives session and transfer events. Every hook is a no-op by default."""

    def session_opened(self, host: str, port: int, session_id: str) -> None:
        pass

    def session_failed(self, host: str, port: int, error: FtpClientError) -> None:
        pass

    def transfer_started(self, operation: str, remote_path: str, local_path: str) -> None:
        pass

    def chunk_written(self, remote_path: str, chunk_bytes: int, total_bytes: int) -> None:
        pass

    def transient_error(
        self,
        remote_path: str,
        error: FtpClientError,
        attempt: int,
        delay: float,
    ) -> None:
        pass

    def keepalive_failed(self, remote_path: str, error: FtpClientError) -> None:
        pass

    def backup_created(self, local_path: str, backup_path: str) -> None:
        pass

    def transfer_finished(self, operation: str, outcome: TransferOutcome) -> None:
        pass


class LoggingObserver(TransferObserver):
    """
    Observer that writes structured log records.

    Per-chunk events are logged at DEBUG; everything a user needs to follow a
    transfer (start, backups, retries, outcome) is INFO or above.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.logger = log or logger

    def session_opened(self, host: str, port: int, session_id: str) -> None:
        log_with_context(
            self.logger,
            logging.INFO,
            "Connected to FTP server",
            host=host,
            port=port,
            session_id=session_id,
        )

    def session_failed(self, host: str, port: int, error: FtpClientError) -> None:
        log_exception(
            self.logger,
            error,
            "Could not open FTP session",
            include_traceback=False,
            host=host,
            port=port,
        )

    def transfer_started(self, operation: str, remote_path: str, local_path: str) -> None:
        log_with_context(
            self.logger,
            logging.INFO,
            "Transfer started",
            operation=operation,
            remote_path=remote_path,
            destination_path=local_path,
        )

    def chunk_written(self, remote_path: str, chunk_bytes: int, total_bytes: int) -> None:
        log_with_context(
            self.logger,
            logging.DEBUG,
            "Chunk written",
            remote_path=remote_path,
            chunk_bytes=chunk_bytes,
            bytes_downloaded=total_bytes,
        )

    def transient_error(
        self,
        remote_path: str,
        error: FtpClientError,
        attempt: int,
        delay: float,
    ) -> None:
        log_with_context(
            self.logger,
            logging.WARNING,
            "Transient error during transfer, retrying",
            remote_path=remote_path,
            attempt=attempt,
            delay_seconds=round(delay, 3),
            error_category=error.category.value,
            error_message=str(error)[:500],
            reply=error.reply,
        )

    def keepalive_failed(self, remote_path: str, error: FtpClientError) -> None:
        log_with_context(
            self.logger,
            logging.WARNING,
            "Keep-alive command refused by server",
            remote_path=remote_path,
            error_category=error.category.value,
            error_message=str(error)[:500],
            reply=error.reply,
        )

    def backup_created(self, local_path: str, backup_path: str) -> None:
        log_with_context(
            self.logger,
            logging.INFO,
            "Existing local file moved to backup",
            destination_path=local_path,
            backup_path=backup_path,
        )

    def transfer_finished(self, operation: str, outcome: TransferOutcome) -> None:
        if outcome.success:
            log_with_context(
                self.logger,
                logging.INFO,
                "Transfer complete",
                operation=operation,
                remote_path=outcome.remote_path,
                destination_path=outcome.local_path,
                bytes_downloaded=outcome.bytes_transferred,
            )
            return

        log_exception(
            self.logger,
            outcome.error,
            "Transfer failed",
            include_traceback=False,
            operation=operation,
            remote_path=outcome.remote_path,
            destination_path=outcome.local_path,
        )


__all__ = ["TransferObserver", "LoggingObserver"]
