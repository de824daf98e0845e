"""
FTP session lifecycle: connect, authenticate, disconnect.

A Session is bound to one control connection to one host:port and moves
through DISCONNECTED -> CONNECTED -> AUTHENTICATED -> CLOSED. Listing and
transfer operations require AUTHENTICATED and raise SessionStateError
otherwise.

connect() and authenticate() never raise for network or login failures;
they return a SessionResult carrying the classified error instead.
"""

from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from core.errors.exceptions import FtpClientError, SessionStateError
from core.logging.setup import generate_session_id
from ftpfetch.models import SessionResult
from ftpfetch.observer import LoggingObserver, TransferObserver
from ftpfetch.transport import FtpTransport

if TYPE_CHECKING:
    from config.config import FtpClientConfig

DEFAULT_PORT = 21
DEFAULT_TIMEOUT_SECONDS = 3600.0


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class Session:
    """
    Handle for one FTP control connection.

    Owned by the caller and closed with disconnect(), or by using the session
    as a context manager. Sessions share no state; one thread of control per
    session.
    """

    def __init__(
        self,
        host: str,
        port: int,
        transport: FtpTransport,
        session_id: Optional[str] = None,
    ):
        self.host = host
        self.port = port
        self.transport = transport
        self.session_id = session_id or generate_session_id()
        self.state = SessionState.DISCONNECTED
        self.welcome: Optional[str] = None

    @property
    def encoding(self) -> str:
        return self.transport.encoding

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def require_authenticated(self, operation: str) -> None:
        if self.state is not SessionState.AUTHENTICATED:
            raise SessionStateError(
                f"Cannot {operation}: session is {self.state.value}, not authenticated",
                context={"operation": operation, "session_id": self.session_id},
            )

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        disconnect(self)
        return False

    def __repr__(self) -> str:
        return f"Session({self.host}:{self.port}, {self.state.value}, id={self.session_id})"


def connect(
    host: str,
    port: int = DEFAULT_PORT,
    *,
    timeout: Optional[float] = None,
    verbose: Optional[bool] = None,
    observer: Optional[TransferObserver] = None,
    transport_factory: Callable[[], FtpTransport] = FtpTransport,
) -> SessionResult:
    """
    Open the control connection to host:port.

    Args:
        host: Server host name or address
        port: Control port
        timeout: Idle timeout in seconds (default 3600)
        verbose: Trace protocol exchanges on stdout (default True)
        observer: Receives session_opened/session_failed
        transport_factory: Builds the FtpTransport (tests inject fakes here)

    Returns:
        SessionResult holding a CONNECTED session, or the ConnectionError
    """
    observer = observer or LoggingObserver()
    timeout = DEFAULT_TIMEOUT_SECONDS if timeout is None else timeout
    verbose = True if verbose is None else verbose

    transport = transport_factory()
    session = Session(host, port, transport)
    try:
        session.welcome = transport.open(host, port, timeout, verbose)
    except FtpClientError as e:
        observer.session_failed(host, port, e)
        return SessionResult.failed(e)

    session.state = SessionState.CONNECTED
    observer.session_opened(host, port, session.session_id)
    return SessionResult.succeeded(session)


def authenticate(
    result: SessionResult,
    username: str,
    password: str,
    *,
    observer: Optional[TransferObserver] = None,
) -> SessionResult:
    """
    Log in on a connected session.

    A failed result is returned unchanged. Rejected credentials (530/430)
    yield InvalidCredentials; any other login failure yields AuthError. The
    control connection is closed when login fails.
    """
    if not result.ok:
        return result

    session = result.session
    if session.state is not SessionState.CONNECTED:
        return SessionResult.failed(
            SessionStateError(
                f"Cannot authenticate: session is {session.state.value}, not connected",
                context={"operation": "authenticate", "session_id": session.session_id},
            )
        )

    try:
        session.transport.login(username, password)
    except FtpClientError as e:
        # The failed result drops the session, so nobody else can close it
        disconnect(session)
        (observer or LoggingObserver()).session_failed(session.host, session.port, e)
        return SessionResult.failed(e)

    session.state = SessionState.AUTHENTICATED
    return SessionResult.succeeded(session)


def disconnect(session: Session) -> bool:
    """
    Close the session.

    Returns:
        True if a connection was closed, False if it was already closed
    """
    if session.state in (SessionState.CLOSED, SessionState.DISCONNECTED):
        session.state = SessionState.CLOSED
        return False

    session.state = SessionState.CLOSED
    return session.transport.close()


def open_session(
    config: "FtpClientConfig",
    observer: Optional[TransferObserver] = None,
    transport_factory: Optional[Callable[[], FtpTransport]] = None,
) -> SessionResult:
    """Connect and authenticate with the values of an FtpClientConfig."""
    if transport_factory is None:

        def transport_factory() -> FtpTransport:
            return FtpTransport(
                encoding=config.encoding,
                keepalive_command=config.keepalive_command,
                keepalive_interval=config.keepalive_interval_seconds,
            )

    result = connect(
        config.host,
        config.port,
        timeout=config.timeout_seconds,
        verbose=config.verbose,
        observer=observer,
        transport_factory=transport_factory,
    )
    return authenticate(result, config.username, config.password, observer=observer)


__all__ = [
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT_SECONDS",
    "Session",
    "SessionState",
    "authenticate",
    "connect",
    "disconnect",
    "open_session",
]
