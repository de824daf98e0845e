from unittest.mock import Mock, patch

import pytest

from config.config import FtpClientConfig
from core.errors.exceptions import (
    AuthError,
    ConnectionError,
    InvalidCredentials,
    SessionStateError,
)
from ftpfetch.models import SessionResult
from ftpfetch.session import (
    DEFAULT_TIMEOUT_SECONDS,
    Session,
    SessionState,
    authenticate,
    connect,
    disconnect,
    open_session,
)
from ftpfetch.transport import FtpTransport


@pytest.fixture
def new_transport():
    mock = Mock(spec=FtpTransport)
    mock.encoding = "utf-8"
    mock.open.return_value = "220 Welcome"
    mock.close.return_value = True
    return mock


def _connected(new_transport, observer):
    return connect("ftp.example.com", observer=observer, transport_factory=lambda: new_transport)


class TestConnect:

    def test_success(self, new_transport, observer):
        result = _connected(new_transport, observer)

        assert result.ok
        session = result.session
        assert session.state is SessionState.CONNECTED
        assert session.welcome == "220 Welcome"
        assert session.port == 21
        new_transport.open.assert_called_once_with(
            "ftp.example.com", 21, DEFAULT_TIMEOUT_SECONDS, True
        )
        observer.session_opened.assert_called_once_with(
            "ftp.example.com", 21, session.session_id
        )

    def test_explicit_timeout_and_quiet(self, new_transport, observer):
        connect(
            "h", 2121, timeout=5.0, verbose=False,
            observer=observer, transport_factory=lambda: new_transport,
        )

        new_transport.open.assert_called_once_with("h", 2121, 5.0, False)

    def test_failure_returns_error(self, new_transport, observer):
        error = ConnectionError("Could not connect: refused")
        new_transport.open.side_effect = error

        result = _connected(new_transport, observer)

        assert not result.ok
        assert result.session is None
        assert result.error is error
        observer.session_failed.assert_called_once_with("ftp.example.com", 21, error)

    def test_each_session_has_own_transport(self, observer):
        def factory():
            t = Mock(spec=FtpTransport)
            t.open.return_value = "220"
            return t

        a = connect("h", observer=observer, transport_factory=factory)
        b = connect("h", observer=observer, transport_factory=factory)

        assert a.session is not b.session
        assert a.session.transport is not b.session.transport


class TestAuthenticate:

    def test_success(self, new_transport, observer):
        result = authenticate(_connected(new_transport, observer), "alice", "secret")

        assert result.ok
        assert result.session.state is SessionState.AUTHENTICATED
        new_transport.login.assert_called_once_with("alice", "secret")

    def test_invalid_credentials(self, new_transport, observer):
        error = InvalidCredentials("Invalid username or password")
        new_transport.login.side_effect = error
        connected = _connected(new_transport, observer)
        session = connected.session

        result = authenticate(connected, "alice", "wrong", observer=observer)

        assert result.error is error
        assert result.session is None
        assert session.state is SessionState.CLOSED
        new_transport.close.assert_called_once()
        observer.session_failed.assert_called_once_with("ftp.example.com", 21, error)

    def test_other_auth_error(self, new_transport, observer):
        new_transport.login.side_effect = AuthError("Authentication failed: 421")

        result = authenticate(_connected(new_transport, observer), "alice", "secret", observer=observer)

        assert isinstance(result.error, AuthError)
        assert not isinstance(result.error, InvalidCredentials)

    def test_failed_result_passes_through(self):
        failed = SessionResult.failed(ConnectionError("refused"))

        assert authenticate(failed, "alice", "secret") is failed

    def test_requires_connected_session(self, session):
        result = authenticate(SessionResult.succeeded(session), "alice", "secret")

        assert isinstance(result.error, SessionStateError)
        session.transport.login.assert_not_called()


class TestDisconnect:

    def test_close_then_close_again(self, new_transport, observer):
        session = _connected(new_transport, observer).session

        assert disconnect(session) is True
        assert session.state is SessionState.CLOSED
        assert disconnect(session) is False
        new_transport.close.assert_called_once()

    def test_never_connected(self, new_transport):
        session = Session("h", 21, new_transport)

        assert disconnect(session) is False
        new_transport.close.assert_not_called()

    def test_operations_after_close_fail(self, session):
        disconnect(session)

        with pytest.raises(SessionStateError, match="closed"):
            session.require_authenticated("list")

    def test_context_manager_disconnects(self, session):
        with session as s:
            assert s is session

        assert session.state is SessionState.CLOSED
        session.transport.close.assert_called_once()


class TestOpenSession:

    def test_connects_and_logs_in(self, new_transport, observer):
        config = FtpClientConfig(
            host="ftp.example.com", port=2121, username="alice", password="secret",
            timeout_seconds=10, verbose=False,
        )

        result = open_session(config, observer=observer, transport_factory=lambda: new_transport)

        assert result.ok
        assert result.session.is_authenticated
        new_transport.open.assert_called_once_with("ftp.example.com", 2121, 10.0, False)
        new_transport.login.assert_called_once_with("alice", "secret")

    def test_connect_failure_skips_login(self, new_transport, observer):
        new_transport.open.side_effect = ConnectionError("refused")

        result = open_session(
            FtpClientConfig(host="h"), observer=observer, transport_factory=lambda: new_transport
        )

        assert isinstance(result.error, ConnectionError)
        new_transport.login.assert_not_called()

    def test_default_transport_uses_config(self):
        config = FtpClientConfig(
            host="h", encoding="latin-1", keepalive_command="NOOP", keepalive_interval_seconds=5
        )
        captured = {}

        def fake_connect(host, port, **kwargs):
            captured["transport"] = kwargs["transport_factory"]()
            return SessionResult.failed(ConnectionError("refused"))

        with patch("ftpfetch.session.connect", side_effect=fake_connect):
            open_session(config)

        assert captured["transport"].encoding == "latin-1"
        assert captured["transport"].keepalive_command == "NOOP"
        assert captured["transport"].keepalive_interval == 5.0
