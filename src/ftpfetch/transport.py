"""
ftplib-backed transport for the FTP client.

FtpTransport is the only place that talks to ftplib. Every ftplib, socket
and local OSError is translated into the FtpClientError hierarchy here, so
the session, fetch and download layers only ever handle typed errors.
"""

import ftplib
import time
from typing import Callable, List, Optional, Tuple

from core.errors.classifiers import FtpErrorClassifier
from core.errors.exceptions import FtpClientError, SessionStateError, TransferError

DEFAULT_BLOCKSIZE = 8192
DEFAULT_KEEPALIVE_INTERVAL = 30.0

# Keep-alive commands allowed on the wire before their replies are read
MAX_PENDING_KEEPALIVES = 8

# Positive completion replies to RETR
TRANSFER_COMPLETE_CODES = ("226", "250")

Reply = Tuple[str, Optional[ftplib.Error]]


def _pick_transfer_reply(replies: List[Reply]) -> Reply:
    """The RETR completion reply, else the first refusal, else the first reply."""
    for reply in replies:
        if reply[0][:3] in TRANSFER_COMPLETE_CODES:
            return reply
    for reply in replies:
        if reply[1] is not None:
            return reply
    return replies[0]


class ChunkStream:
    """
    Data connection of an in-progress RETR, read one chunk at a time.

    pull() returns the next chunk, or None once the server has closed the
    data connection and confirmed the transfer. A 4xx reply while reading is
    raised as TransientError and the stream stays usable. A failed final
    reply is terminal: the data connection is already gone, so every later
    pull() raises the same error.

    keep_alive() writes the keep-alive command to the control connection
    without waiting for its reply. Many servers do not read the control
    connection until the transfer ends, so the replies are collected after
    the data connection closes, together with the transfer reply. Commands
    go out at most once per ``keepalive_interval`` seconds and never more
    than MAX_PENDING_KEEPALIVES per transfer.
    """

    def __init__(
        self,
        ftp: ftplib.FTP,
        conn,
        remote_name: str,
        chunk_size: int,
        keepalive_command: str = "PWD",
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ftp = ftp
        self._conn = conn
        self.remote_name = remote_name
        self.chunk_size = chunk_size
        self.keepalive_command = keepalive_command
        self.keepalive_interval = keepalive_interval
        self._clock = clock
        self._last_keepalive = clock()
        self.pending_keepalives = 0
        self.keepalive_errors: List[FtpClientError] = []
        self._finished = False
        self._error: Optional[TransferError] = None
        self.abort_error = None

    @property
    def finished(self) -> bool:
        return self._finished

    def _context(self) -> dict:
        return {"remote_path": self.remote_name, "operation": "download"}

    def keep_alive(self) -> bool:
        """
        Send the keep-alive command if one is due.

        Returns:
            True if the command was written to the control connection

        Raises:
            TransferError: The control connection could not be written to
        """
        if self._finished or self.pending_keepalives >= MAX_PENDING_KEEPALIVES:
            return False
        now = self._clock()
        if now - self._last_keepalive < self.keepalive_interval:
            return False

        try:
            self._ftp.putcmd(self.keepalive_command)
        except ftplib.all_errors as e:
            raise TransferError(
                f"Keep-alive could not be sent: {e}",
                cause=e,
                context={**self._context(), "command": self.keepalive_command},
            )
        self.pending_keepalives += 1
        self._last_keepalive = now
        return True

    def pull(self) -> Optional[bytes]:
        if self._error is not None:
            raise self._error
        if self._finished:
            return None

        try:
            chunk = self._conn.recv(self.chunk_size)
        except ftplib.all_errors as e:
            raise FtpErrorClassifier.classify_transfer_error(e, self._context())

        if chunk:
            return chunk

        # Data connection drained; the transfer reply decides the outcome
        self._close_data()
        self._finished = True
        try:
            failure = self._read_transfer_reply()
        except ftplib.all_errors as e:
            failure = e
        if failure is not None:
            self._error = self._terminal_error(failure)
            raise self._error
        return None

    def _read_reply(self) -> Reply:
        try:
            return self._ftp.getresp(), None
        except (ftplib.error_temp, ftplib.error_perm, ftplib.error_proto) as e:
            return str(e).strip(), e

    def _read_transfer_reply(self) -> Optional[Exception]:
        """
        Read the transfer reply and any keep-alive replies behind it.

        Servers that answer the keep-alive during the transfer put its reply
        ahead of the transfer reply, so the transfer reply is picked by code.

        Returns:
            The failed transfer reply as an ftplib error, or None
        """
        if not self.pending_keepalives:
            self._ftp.voidresp()
            return None

        count, self.pending_keepalives = self.pending_keepalives + 1, 0
        replies = [self._read_reply() for _ in range(count)]

        transfer = _pick_transfer_reply(replies)
        for reply in replies:
            if reply is not transfer and reply[1] is not None:
                self.keepalive_errors.append(
                    FtpErrorClassifier.classify_transfer_error(
                        reply[1], {**self._context(), "command": self.keepalive_command}
                    )
                )

        text, failure = transfer
        if failure is None and not text.startswith("2"):
            failure = ftplib.error_reply(text)
        return failure

    def _terminal_error(self, error: Exception) -> TransferError:
        if isinstance(error, ftplib.error_temp):
            return TransferError(
                f"Transfer aborted by server: {error}",
                cause=error,
                context={**self._context(), "reply": str(error).strip()},
            )
        classified = FtpErrorClassifier.classify_transfer_error(error, self._context())
        if isinstance(classified, TransferError):
            return classified
        return TransferError(classified.message, cause=error, context=classified.context)

    def _close_data(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            conn.close()

    def close(self) -> None:
        """
        Release the data connection.

        Closing before the end-marker aborts the transfer on the server so the
        control connection is left ready for the next command. Replies to
        keep-alives already sent are read after the abort.
        """
        if self._conn is None:
            return
        self._close_data()
        if self._finished:
            return
        self._finished = True
        try:
            self._ftp.abort()
        except ftplib.all_errors as e:
            # ABOR is best effort; the control connection reports the
            # failure on its next command
            self.abort_error = FtpErrorClassifier.classify_transfer_error(
                e, {**self._context(), "action": "abort"}
            )

        pending, self.pending_keepalives = self.pending_keepalives, 0
        for _ in range(pending):
            try:
                _, refused = self._read_reply()
            except ftplib.all_errors as e:
                self.abort_error = FtpErrorClassifier.classify_transfer_error(
                    e, {**self._context(), "action": "abort"}
                )
                return
            if refused is not None:
                self.keepalive_errors.append(
                    FtpErrorClassifier.classify_transfer_error(
                        refused, {**self._context(), "command": self.keepalive_command}
                    )
                )


class FtpTransport:
    """
    Thin wrapper around one ftplib.FTP control connection.

    Args:
        ftp_factory: Callable creating an unconnected ftplib.FTP
        encoding: Control connection encoding
        keepalive_command: Command a ChunkStream sends between chunks
        keepalive_interval: Minimum seconds between keep-alive commands
    """

    def __init__(
        self,
        ftp_factory: Callable[[], ftplib.FTP] = ftplib.FTP,
        encoding: str = "utf-8",
        keepalive_command: str = "PWD",
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
    ):
        self._ftp_factory = ftp_factory
        self.encoding = encoding
        self.keepalive_command = keepalive_command
        self.keepalive_interval = keepalive_interval
        self._ftp: Optional[ftplib.FTP] = None

    @property
    def is_open(self) -> bool:
        return self._ftp is not None

    def _require_open(self, operation: str) -> ftplib.FTP:
        if self._ftp is None:
            raise SessionStateError(
                f"Control connection is not open ({operation})",
                context={"operation": operation},
            )
        return self._ftp

    def open(self, host: str, port: int, timeout: float, verbose: bool = False) -> str:
        """Open the control connection and return the server greeting."""
        ftp = self._ftp_factory()
        ftp.encoding = self.encoding
        if verbose:
            ftp.set_debuglevel(1)
        try:
            welcome = ftp.connect(host, port, timeout=timeout)
        except ftplib.all_errors as e:
            ftp.close()
            raise FtpErrorClassifier.classify_connect_error(e, {"host": host, "port": port})
        self._ftp = ftp
        return welcome

    def close(self) -> bool:
        """
        Send QUIT, falling back to closing the socket.

        Returns:
            False if the connection was not open
        """
        if self._ftp is None:
            return False
        ftp, self._ftp = self._ftp, None
        try:
            ftp.quit()
        except ftplib.all_errors:
            ftp.close()
        return True

    def login(self, user: str, password: str) -> str:
        ftp = self._require_open("login")
        try:
            return ftp.login(user, password)
        except ftplib.all_errors as e:
            raise FtpErrorClassifier.classify_login_error(e, {"username": user})

    def pwd(self) -> str:
        ftp = self._require_open("pwd")
        try:
            return ftp.pwd()
        except ftplib.all_errors as e:
            raise FtpErrorClassifier.classify_transfer_error(e, {"operation": "pwd"})

    def cwd(self, path: str) -> str:
        ftp = self._require_open("cwd")
        try:
            return ftp.cwd(path)
        except ftplib.all_errors as e:
            raise FtpErrorClassifier.classify_transfer_error(
                e, {"operation": "cwd", "remote_path": path}
            )

    def set_binary(self) -> None:
        ftp = self._require_open("set_binary")
        try:
            ftp.voidcmd("TYPE I")
        except ftplib.all_errors as e:
            raise FtpErrorClassifier.classify_transfer_error(e, {"operation": "set_binary"})

    def retrieve_file(
        self, remote_name: str, local_path: str, blocksize: int = DEFAULT_BLOCKSIZE
    ) -> int:
        """
        RETR remote_name into local_path (truncating it).

        Returns:
            Number of bytes written
        """
        ftp = self._require_open("fetch")
        try:
            local_file = open(local_path, "wb")
        except OSError as e:
            raise FtpErrorClassifier.classify_local_error(e, local_path, "open")

        written = 0

        def write_block(block: bytes) -> None:
            nonlocal written
            try:
                local_file.write(block)
            except OSError as e:
                raise FtpErrorClassifier.classify_local_error(e, local_path, "write")
            written += len(block)

        with local_file:
            try:
                ftp.retrbinary(f"RETR {remote_name}", write_block, blocksize)
            except ftplib.all_errors as e:
                raise FtpErrorClassifier.classify_transfer_error(
                    e, {"operation": "fetch", "remote_path": remote_name}
                )
        return written

    def start_chunked_receive(self, remote_name: str, chunk_size: int) -> ChunkStream:
        """Switch to binary mode and open the data connection for RETR."""
        ftp = self._require_open("download")
        try:
            ftp.voidcmd("TYPE I")
            conn = ftp.transfercmd(f"RETR {remote_name}")
        except ftplib.all_errors as e:
            raise FtpErrorClassifier.classify_transfer_error(
                e, {"operation": "download", "remote_path": remote_name}
            )
        return ChunkStream(
            ftp,
            conn,
            remote_name,
            chunk_size,
            keepalive_command=self.keepalive_command,
            keepalive_interval=self.keepalive_interval,
        )

    def list_names(self, path: Optional[str] = None) -> bytes:
        """NLST, returning the raw data connection payload."""
        ftp = self._require_open("list")
        cmd = f"NLST {path}" if path else "NLST"
        try:
            ftp.voidcmd("TYPE A")
            with ftp.transfercmd(cmd) as conn:
                data = b"".join(iter(lambda: conn.recv(DEFAULT_BLOCKSIZE), b""))
            ftp.voidresp()
        except ftplib.all_errors as e:
            raise FtpErrorClassifier.classify_transfer_error(
                e, {"operation": "list", "remote_path": path or "."}
            )
        return data


__all__ = ["ChunkStream", "FtpTransport", "DEFAULT_BLOCKSIZE"]
