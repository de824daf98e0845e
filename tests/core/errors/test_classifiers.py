"""
Tests for ftplib error classification.
"""

import errno
import ftplib
import socket

import pytest

from core.errors.classifiers import FtpErrorClassifier, reply_code
from core.errors.exceptions import (
    AuthError,
    ConnectionError,
    ErrorCategory,
    FilesystemError,
    InvalidCredentials,
    TransferError,
    TransientError,
)


class TestReplyCode:
    def test_extracts_code(self):
        assert reply_code(ftplib.error_perm("550 No such file")) == "550"

    def test_strips_whitespace(self):
        assert reply_code(ftplib.error_temp(" 421 Timeout\r\n")) == "421"

    def test_no_code(self):
        assert reply_code(OSError("Connection refused")) is None


class TestClassifyConnectError:
    def test_socket_error_becomes_connection_error(self):
        cause = socket.gaierror(-2, "Name or service not known")
        error = FtpErrorClassifier.classify_connect_error(cause, {"host": "nowhere"})

        assert isinstance(error, ConnectionError)
        assert error.cause is cause
        assert error.context["host"] == "nowhere"
        assert error.context["service"] == "ftp_control"

    def test_greeting_reply_recorded(self):
        error = FtpErrorClassifier.classify_connect_error(
            ftplib.error_temp("421 Too many connections")
        )
        assert isinstance(error, ConnectionError)
        assert error.reply == "421 Too many connections"


class TestClassifyLoginError:
    @pytest.mark.parametrize("reply", ["530 Login incorrect.", "430 Invalid username"])
    def test_rejected_credentials(self, reply):
        error = FtpErrorClassifier.classify_login_error(ftplib.error_perm(reply))

        assert isinstance(error, InvalidCredentials)
        assert error.message == "Invalid username or password"
        assert error.reply == reply

    def test_other_permanent_reply_is_auth_error(self):
        error = FtpErrorClassifier.classify_login_error(
            ftplib.error_perm("500 Unknown command")
        )
        assert isinstance(error, AuthError)
        assert not isinstance(error, InvalidCredentials)

    def test_temporary_reply_is_auth_error(self):
        error = FtpErrorClassifier.classify_login_error(ftplib.error_temp("421 Service closing"))
        assert type(error) is AuthError
        assert error.category == ErrorCategory.AUTH

    def test_socket_failure_is_auth_error(self):
        cause = EOFError()
        error = FtpErrorClassifier.classify_login_error(cause)
        assert type(error) is AuthError
        assert error.cause is cause


class TestClassifyTransferError:
    def test_error_temp_is_transient(self):
        error = FtpErrorClassifier.classify_transfer_error(
            ftplib.error_temp("450 File busy"), {"remote_path": "/a"}
        )
        assert isinstance(error, TransientError)
        assert error.reply == "450 File busy"
        assert error.context["remote_path"] == "/a"
        assert error.context["service"] == "ftp_data"

    def test_socket_timeout_is_transient(self):
        error = FtpErrorClassifier.classify_transfer_error(socket.timeout("timed out"))
        assert isinstance(error, TransientError)
        assert error.message == "Data channel read timed out"

    @pytest.mark.parametrize(
        "cause",
        [
            ftplib.error_perm("550 No such file"),
            ftplib.error_reply("226 unexpected"),
            ftplib.error_proto("bogus reply"),
        ],
    )
    def test_protocol_errors_are_terminal(self, cause):
        error = FtpErrorClassifier.classify_transfer_error(cause)
        assert isinstance(error, TransferError)
        assert error.message.startswith("Server refused transfer")
        assert error.cause is cause

    def test_other_os_error_is_terminal(self):
        error = FtpErrorClassifier.classify_transfer_error(
            ConnectionResetError(errno.ECONNRESET, "reset")
        )
        assert isinstance(error, TransferError)
        assert error.message.startswith("Transfer failed")

    def test_typed_error_passes_through(self):
        original = TransientError("busy")
        result = FtpErrorClassifier.classify_transfer_error(original, {"attempt": 2})
        assert result is original
        assert original.context["attempt"] == 2


class TestClassifyLocalError:
    def test_wraps_os_error(self):
        cause = PermissionError(errno.EACCES, "Permission denied")
        error = FtpErrorClassifier.classify_local_error(cause, "/data/a.txt", "open")

        assert isinstance(error, FilesystemError)
        assert error.message == "Could not open /data/a.txt: Permission denied"
        assert error.context == {"destination_path": "/data/a.txt", "action": "open"}
        assert error.category == ErrorCategory.PERMANENT

