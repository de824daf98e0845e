"""Shared fixtures for ftpfetch tests."""

from unittest.mock import Mock

import pytest

from ftpfetch.observer import TransferObserver
from ftpfetch.session import Session, SessionState
from ftpfetch.transport import FtpTransport


class ScriptedStream:
    """
    ChunkStream stand-in replaying a script of events.

    Each event is a bytes chunk, None (end-marker) or an exception to raise.
    keepalive_error, when set, is raised by every keep_alive() call.
    """

    def __init__(self, events, keepalive_error=None):
        self.events = list(events)
        self.pulls = 0
        self.close_calls = 0
        self.keepalive_calls = 0
        self.keepalive_error = keepalive_error
        self.keepalive_errors = []

    def pull(self):
        self.pulls += 1
        event = self.events.pop(0)
        if isinstance(event, Exception):
            raise event
        return event

    def keep_alive(self):
        self.keepalive_calls += 1
        if self.keepalive_error is not None:
            raise self.keepalive_error
        return True

    def close(self):
        self.close_calls += 1


@pytest.fixture
def transport():
    mock = Mock(spec=FtpTransport)
    mock.encoding = "utf-8"
    mock.keepalive_command = "PWD"
    mock.pwd.return_value = "/"
    mock.close.return_value = True
    return mock


@pytest.fixture
def session(transport):
    """Authenticated session over a mock transport."""
    s = Session("ftp.example.com", 21, transport, session_id="s-test")
    s.state = SessionState.AUTHENTICATED
    return s


@pytest.fixture
def observer():
    return Mock(spec=TransferObserver)


@pytest.fixture
def scripted_stream():
    """Factory for ScriptedStream."""
    return ScriptedStream
