"""
FTP file-transfer client.

Open a session, then list, fetch or download against it:

    >>> from ftpfetch import connect, authenticate, disconnect, fetch, download
    >>>
    >>> result = authenticate(connect("ftp.example.com"), "user", "secret")
    >>> if result.ok:
    ...     outcome = fetch(result, "/pub/report.csv", "downloads")
    ...     outcome = download(result.session, "/pub/big.iso", "downloads")
    ...     disconnect(result.session)

Modules:
    session     - connect / authenticate / disconnect, Session lifecycle
    listing     - NLST name listing
    fetcher     - whole-file fetch with local backup of existing files
    downloader  - chunked download with keep-alive and bounded retry
    transport   - ftplib wrapper translating errors to core.errors
    observer    - injectable transfer event observers
    models      - SessionResult and TransferOutcome
"""

from ftpfetch.downloader import ChunkedDownloader, DownloadState, download
from ftpfetch.fetcher import fetch, fetch_many
from ftpfetch.listing import list_names
from ftpfetch.models import SessionResult, TransferOutcome
from ftpfetch.observer import LoggingObserver, TransferObserver
from ftpfetch.session import (
    Session,
    SessionState,
    authenticate,
    connect,
    disconnect,
    open_session,
)
from ftpfetch.transport import ChunkStream, FtpTransport

__all__ = [
    # Session
    "Session",
    "SessionState",
    "connect",
    "authenticate",
    "disconnect",
    "open_session",
    # Operations
    "list_names",
    "fetch",
    "fetch_many",
    "download",
    "ChunkedDownloader",
    "DownloadState",
    # Models
    "SessionResult",
    "TransferOutcome",
    # Observers
    "TransferObserver",
    "LoggingObserver",
    # Transport
    "FtpTransport",
    "ChunkStream",
]
