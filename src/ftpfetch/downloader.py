"""
Chunked download with keep-alive and bounded transient retry.

The remote file is streamed chunk by chunk and appended to a local file
under local_directory, keeping the remote directory structure. After every
chunk the stream is asked for a keep-alive so long transfers do not hit the
server's idle timeout on the control connection. The keep-alive is written
without waiting for its reply; replies are read once the data connection
closes, and refused ones are reported to the observer.

Error handling:
- TransientError while pulling: nothing is written, the pull is retried
  after a backoff delay. Retries are counted per run of consecutive
  transient errors and bounded by RetryConfig (max_attempts=0 is unbounded)
- Any other FtpClientError ends the download with a failure outcome,
  including a keep-alive that cannot be written
- Local directory creation or open failure raises FilesystemError

The partial local file is kept on failure unless remove_partial_on_failure
is set. Because the file is opened in append mode, a kept partial file is
extended by the next download of the same remote path.
"""

import os
import time
from enum import Enum
from typing import Callable, Optional

from core.errors.classifiers import FtpErrorClassifier
from core.errors.exceptions import (
    FtpClientError,
    TransferError,
    TransientError,
)
from core.resilience.retry import TRANSIENT_CHUNK_RETRY, RetryConfig, RetryStats
from ftpfetch.models import TransferOutcome
from ftpfetch.observer import LoggingObserver, TransferObserver
from ftpfetch.session import Session
from ftpfetch.transport import DEFAULT_BLOCKSIZE, ChunkStream

OPERATION = "download"


class DownloadState(Enum):
    INITIATED = "initiated"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


def local_target_path(local_directory: str, remote_file: str) -> str:
    """
    Map a remote path below local_directory.

    >>> local_target_path("downloads", "/pub/data/file.bin")
    'downloads/pub/data/file.bin'
    """
    relative = remote_file.lstrip("/")
    normalized = os.path.normpath(relative) if relative else ""
    if normalized in ("", ".", "..") or normalized.startswith(".." + os.sep):
        raise TransferError(
            f"Remote path does not name a file below the local directory: {remote_file!r}",
            context={"remote_path": remote_file, "destination_path": local_directory},
        )
    return os.path.join(local_directory, relative)


class ChunkedDownloader:
    """
    Streams one remote file at a time into a local append-mode file.

    Args:
        session: Authenticated session
        chunk_size: Bytes requested per pull
        retry_config: Transient retry policy (default 50 attempts, capped backoff)
        observer: Receives transfer events (default LoggingObserver)
        remove_partial_on_failure: Delete the local file when the download fails
        sleep: Delay function, replaced in tests
    """

    def __init__(
        self,
        session: Session,
        *,
        chunk_size: int = DEFAULT_BLOCKSIZE,
        retry_config: Optional[RetryConfig] = None,
        observer: Optional[TransferObserver] = None,
        remove_partial_on_failure: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session
        self.chunk_size = chunk_size
        self.retry_config = retry_config or TRANSIENT_CHUNK_RETRY
        self.observer = observer or LoggingObserver()
        self.remove_partial_on_failure = remove_partial_on_failure
        self._sleep = sleep
        self.state = DownloadState.INITIATED
        self.retry_stats = RetryStats()

    def _fail(self, remote_file: str, error: FtpClientError, local_path=None) -> TransferOutcome:
        self.state = DownloadState.FAILED
        outcome = TransferOutcome.failure(remote_file, error, local_path=local_path)
        self.observer.transfer_finished(OPERATION, outcome)
        return outcome

    def download(self, remote_file: str, local_directory: str) -> TransferOutcome:
        """
        Download remote_file into local_directory/<remote_file>.

        Returns:
            TransferOutcome; bytes_transferred equals the sum of the chunk
            lengths written

        Raises:
            FilesystemError: Local directory could not be created or the local
                file could not be opened
        """
        self.state = DownloadState.INITIATED
        self.retry_stats = RetryStats()

        try:
            self.session.require_authenticated(OPERATION)
            local_path = local_target_path(local_directory, remote_file)
        except FtpClientError as e:
            return self._fail(remote_file, e)

        try:
            stream = self.session.transport.start_chunked_receive(remote_file, self.chunk_size)
        except FtpClientError as e:
            return self._fail(remote_file, e, local_path)

        error = None
        try:
            try:
                local_file = self._open_local(local_path)
            except FtpClientError:
                self.state = DownloadState.FAILED
                raise
            self.observer.transfer_started(OPERATION, remote_file, local_path)
            self.state = DownloadState.STREAMING
            with local_file:
                try:
                    total = self._append_chunks(stream, local_file, remote_file, local_path)
                except FtpClientError as e:
                    error = e
        finally:
            stream.close()
            for refused in stream.keepalive_errors:
                self.observer.keepalive_failed(remote_file, refused)

        if error is not None:
            if self.remove_partial_on_failure:
                self._remove_partial(local_path, error)
            return self._fail(remote_file, error, local_path)

        self.state = DownloadState.COMPLETED
        outcome = TransferOutcome.success_outcome(remote_file, local_path, total)
        self.observer.transfer_finished(OPERATION, outcome)
        return outcome

    @staticmethod
    def _open_local(local_path: str):
        parent = os.path.dirname(local_path)
        if parent:
            try:
                os.makedirs(parent, exist_ok=True)
            except OSError as e:
                raise FtpErrorClassifier.classify_local_error(e, parent, "create directory")
        try:
            return open(local_path, "ab")
        except OSError as e:
            raise FtpErrorClassifier.classify_local_error(e, local_path, "open")

    @staticmethod
    def _remove_partial(local_path: str, error: FtpClientError) -> None:
        try:
            os.remove(local_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            error.context["cleanup_error"] = str(e)

    def _append_chunks(
        self, stream: ChunkStream, local_file, remote_file: str, local_path: str
    ) -> int:
        """Pull until the end-marker; returns the number of bytes appended."""
        so_far = 0
        while True:
            try:
                chunk = stream.pull()
            except TransientError as e:
                self._before_retry(e, remote_file)
                continue

            if chunk is None:
                return so_far

            try:
                local_file.write(chunk)
            except OSError as e:
                raise FtpErrorClassifier.classify_local_error(e, local_path, "write")
            so_far += len(chunk)
            self.retry_stats.reset()
            self.observer.chunk_written(remote_file, len(chunk), so_far)

            stream.keep_alive()

    def _before_retry(self, error: TransientError, remote_file: str) -> None:
        """Record a transient error and wait, or raise once the bound is reached."""
        attempt = self.retry_stats.attempts
        if not self.retry_config.should_retry(error, attempt):
            raise TransferError(
                f"Giving up after {attempt + 1} consecutive transient errors",
                cause=error,
                context={
                    "operation": OPERATION,
                    "remote_path": remote_file,
                    "attempt": attempt + 1,
                    "max_attempts": self.retry_config.max_attempts,
                },
            )

        delay = self.retry_config.get_delay(attempt)
        self.retry_stats.record()
        self.observer.transient_error(remote_file, error, attempt + 1, delay)
        if delay > 0:
            self._sleep(delay)


def download(
    session: Session,
    remote_file: str,
    local_directory: str,
    *,
    observer: Optional[TransferObserver] = None,
    retry_config: Optional[RetryConfig] = None,
    remove_partial_on_failure: Optional[bool] = None,
    chunk_size: int = DEFAULT_BLOCKSIZE,
) -> TransferOutcome:
    """Download remote_file in chunks; see ChunkedDownloader.download."""
    downloader = ChunkedDownloader(
        session,
        chunk_size=chunk_size,
        retry_config=retry_config,
        observer=observer,
        remove_partial_on_failure=bool(remove_partial_on_failure),
    )
    return downloader.download(remote_file, local_directory)


__all__ = [
    "ChunkedDownloader",
    "DownloadState",
    "OPERATION",
    "download",
    "local_target_path",
]
