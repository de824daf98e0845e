import logging
from unittest.mock import MagicMock

from core.errors.exceptions import InvalidCredentials, TransferError, TransientError
from ftpfetch.models import TransferOutcome
from ftpfetch.observer import LoggingObserver, TransferObserver


def _extra(logger):
    return logger.log.call_args[1]["extra"]


class TestTransferObserver:

    def test_hooks_are_no_ops(self):
        observer = TransferObserver()
        observer.session_opened("h", 21, "s-1")
        observer.chunk_written("f.bin", 10, 10)
        observer.transfer_finished("fetch", TransferOutcome(success=True, remote_path="f.bin"))


class TestLoggingObserver:

    def test_session_opened(self):
        logger = MagicMock(spec=logging.Logger)
        LoggingObserver(logger).session_opened("ftp.example.com", 21, "s-1")

        assert logger.log.call_args[0][0] == logging.INFO
        assert _extra(logger) == {"host": "ftp.example.com", "port": 21, "session_id": "s-1"}

    def test_session_failed_logs_category_without_traceback(self):
        logger = MagicMock(spec=logging.Logger)
        error = InvalidCredentials("Invalid username or password")

        LoggingObserver(logger).session_failed("ftp.example.com", 21, error)

        assert logger.log.call_args[0][0] == logging.ERROR
        assert _extra(logger)["error_category"] == "auth"
        assert "exc_info" not in logger.log.call_args[1]

    def test_chunk_written_is_debug(self):
        logger = MagicMock(spec=logging.Logger)
        LoggingObserver(logger).chunk_written("f.bin", 512, 2048)

        assert logger.log.call_args[0][0] == logging.DEBUG
        assert _extra(logger)["bytes_downloaded"] == 2048

    def test_transient_error(self):
        logger = MagicMock(spec=logging.Logger)
        error = TransientError("Transient negative completion", context={"reply": "450 busy"})

        LoggingObserver(logger).transient_error("f.bin", error, 2, 0.12345)

        extra = _extra(logger)
        assert logger.log.call_args[0][0] == logging.WARNING
        assert extra["attempt"] == 2
        assert extra["delay_seconds"] == 0.123
        assert extra["error_category"] == "transient"
        assert extra["reply"] == "450 busy"

    def test_keepalive_failed(self):
        logger = MagicMock(spec=logging.Logger)
        LoggingObserver(logger).keepalive_failed("f.bin", TransientError("421 busy"))

        assert logger.log.call_args[0][0] == logging.WARNING
        assert _extra(logger)["remote_path"] == "f.bin"

    def test_transfer_finished_success(self):
        logger = MagicMock(spec=logging.Logger)
        outcome = TransferOutcome.success_outcome("f.bin", "downloads/f.bin", 100)

        LoggingObserver(logger).transfer_finished("download", outcome)

        assert logger.log.call_args[0] == (logging.INFO, "Transfer complete")
        assert _extra(logger)["bytes_downloaded"] == 100

    def test_transfer_finished_failure(self):
        logger = MagicMock(spec=logging.Logger)
        outcome = TransferOutcome.failure("f.bin", TransferError("550 No such file"))

        LoggingObserver(logger).transfer_finished("fetch", outcome)

        extra = _extra(logger)
        assert logger.log.call_args[0][0] == logging.ERROR
        assert extra["operation"] == "fetch"
        assert extra["error_category"] == "permanent"
