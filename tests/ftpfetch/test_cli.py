"""Tests for the ftpfetch command-line entry point."""

from unittest.mock import patch

import pytest

from config.config import FtpClientConfig
from core.errors.exceptions import ConnectionError, TransferError
from ftpfetch.__main__ import build_parser, main
from ftpfetch.models import SessionResult, TransferOutcome


@pytest.fixture
def config(tmp_path):
    cfg = FtpClientConfig(host="ftp.example.com", local_directory=str(tmp_path / "downloads"))
    cfg.logging.log_to_stdout = True
    return cfg


@pytest.fixture
def cli(config, session):
    """Patch config loading, logging setup and the session for main()."""
    with patch("ftpfetch.__main__.load_dotenv"), \
         patch("ftpfetch.__main__.setup_logging"), \
         patch("ftpfetch.__main__.load_config", return_value=config) as load_config, \
         patch("ftpfetch.__main__.open_session", return_value=SessionResult.succeeded(session)) as open_session:
        yield {"load_config": load_config, "open_session": open_session}


class TestBuildParser:

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_fetch_requires_files(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["fetch"])

    def test_parses_global_options(self):
        args = build_parser().parse_args(
            ["--host", "h", "--port", "2121", "download", "/pub/x.bin", "--dest", "out"]
        )
        assert args.host == "h"
        assert args.port == 2121
        assert args.command == "download"
        assert args.remote == "/pub/x.bin"
        assert args.dest == "out"


class TestMain:

    def test_list(self, cli, transport, capsys):
        transport.list_names.return_value = b"a.txt\r\nb.txt\r\n"

        assert main(["list"]) == 0

        assert capsys.readouterr().out.splitlines() == ["a.txt", "b.txt"]
        transport.close.assert_called_once()

    def test_list_failure_exits_nonzero(self, cli, transport):
        transport.list_names.side_effect = TransferError("550 Permission denied")

        assert main(["list", "--directory", "/secret"]) == 1
        transport.close.assert_called_once()

    def test_overrides_passed_to_config(self, cli, transport):
        transport.list_names.return_value = b""

        main(["--host", "other.example.com", "--user", "bob", "list"])

        assert cli["load_config"].call_args[1]["overrides"] == {
            "host": "other.example.com",
            "username": "bob",
        }

    def test_fetch(self, cli, config):
        outcomes = [
            TransferOutcome.success_outcome("a.txt", "downloads/a.txt", 5),
            TransferOutcome.success_outcome("b.txt", "downloads/b.txt", 7),
        ]
        with patch("ftpfetch.__main__.fetch_many", return_value=outcomes) as fetch_many:
            assert main(["fetch", "a.txt", "b.txt"]) == 0

        assert fetch_many.call_args[0][1] == ["a.txt", "b.txt"]
        assert fetch_many.call_args[0][2] == config.local_directory

    def test_fetch_with_failure(self, cli):
        outcomes = [
            TransferOutcome.success_outcome("a.txt", "downloads/a.txt", 5),
            TransferOutcome.failure("b.txt", TransferError("550 No such file")),
        ]
        with patch("ftpfetch.__main__.fetch_many", return_value=outcomes):
            assert main(["fetch", "a.txt", "b.txt"]) == 1

    def test_download(self, cli, config, session, tmp_path):
        outcome = TransferOutcome.success_outcome("/pub/x.bin", "x", 3)
        with patch("ftpfetch.__main__.ChunkedDownloader") as downloader_cls:
            downloader_cls.return_value.download.return_value = outcome
            assert main(["download", "/pub/x.bin", "--dest", str(tmp_path)]) == 0

        downloader_cls.return_value.download.assert_called_once_with("/pub/x.bin", str(tmp_path))
        assert downloader_cls.call_args[1]["chunk_size"] == config.chunk_size

    def test_download_failure(self, cli):
        outcome = TransferOutcome.failure("/pub/x.bin", TransferError("426 aborted"))
        with patch("ftpfetch.__main__.ChunkedDownloader") as downloader_cls:
            downloader_cls.return_value.download.return_value = outcome
            assert main(["download", "/pub/x.bin"]) == 1

    def test_session_failure(self, cli):
        cli["open_session"].return_value = SessionResult.failed(ConnectionError("refused"))

        assert main(["list"]) == 1

    def test_config_error(self, cli, capsys):
        cli["load_config"].side_effect = ValueError("ftp.host is required")

        assert main(["list"]) == 1
        assert "Configuration error" in capsys.readouterr().err
