"""
Command-line entry point for the FTP client.

Usage:
    # List the server's starting directory
    python -m ftpfetch list

    # List a specific directory
    python -m ftpfetch list --directory /pub

    # Fetch whole files (existing local files are moved to *.backup first)
    python -m ftpfetch fetch /pub/a.txt /pub/b.txt --dest downloads

    # Chunked download, keeping the remote directory structure under --dest
    python -m ftpfetch download /pub/big/archive.tar --dest downloads

Connection settings come from config/config.yaml (or --config), with
${VAR} references filled from the environment and a .env file in the
project root. --host, --port and --user override the file.

Exit code is 0 when every operation succeeded, 1 otherwise.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from config.config import FtpClientConfig, load_config
from core.errors.exceptions import FtpClientError
from core.logging.context_managers import LogContext, log_operation
from core.logging.setup import setup_logging
from core.logging.utilities import format_batch_summary, log_exception, log_with_context
from ftpfetch.downloader import ChunkedDownloader
from ftpfetch.fetcher import fetch_many
from ftpfetch.listing import list_names
from ftpfetch.models import SessionResult
from ftpfetch.observer import LoggingObserver
from ftpfetch.session import Session, open_session

# Project root directory (where .env file is located)
# __main__.py is at src/ftpfetch/__main__.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ftpfetch",
        description="List, fetch and download files from an FTP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m ftpfetch list
    python -m ftpfetch fetch report.csv --dest downloads
    python -m ftpfetch download /pub/big.iso --dest downloads
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml (default: src/config/config.yaml)",
    )
    parser.add_argument("--host", type=str, default=None, help="Override ftp.host")
    parser.add_argument("--port", type=int, default=None, help="Override ftp.port")
    parser.add_argument("--user", type=str, default=None, help="Override ftp.username")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Console logging level (default: from config)",
    )
    parser.add_argument(
        "--log-to-stdout",
        action="store_true",
        help="Send all log output to stdout only, skipping the log file",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List remote file names (NLST)")
    list_parser.add_argument(
        "--directory", type=str, default=None, help="Remote directory to list"
    )

    fetch_parser = subparsers.add_parser("fetch", help="Fetch whole files")
    fetch_parser.add_argument("files", nargs="+", help="Remote file paths")
    fetch_parser.add_argument(
        "--dest", type=str, default=None, help="Local directory (default: ftp.local_directory)"
    )

    download_parser = subparsers.add_parser("download", help="Chunked download of one file")
    download_parser.add_argument("remote", help="Remote file path")
    download_parser.add_argument(
        "--dest", type=str, default=None, help="Local directory (default: ftp.local_directory)"
    )

    return parser


def _overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.user:
        overrides["username"] = args.user
    return overrides


def run_list(session: Session, args: argparse.Namespace) -> int:
    with log_operation(logger, "list", level=logging.INFO, remote_path=args.directory or "."):
        for name in list_names(session, args.directory):
            print(name)
    return 0


def run_fetch(result: SessionResult, config: FtpClientConfig, args: argparse.Namespace) -> int:
    dest = args.dest or config.local_directory
    Path(dest).mkdir(parents=True, exist_ok=True)

    start = time.perf_counter()
    outcomes = fetch_many(result, args.files, dest, observer=LoggingObserver())
    duration = time.perf_counter() - start

    succeeded = sum(1 for outcome in outcomes if outcome.success)
    failed = len(outcomes) - succeeded
    total_bytes = sum(outcome.bytes_transferred for outcome in outcomes)

    log_with_context(
        logger,
        logging.INFO if failed == 0 else logging.WARNING,
        format_batch_summary(len(outcomes), succeeded, failed, total_bytes, duration),
        files_requested=len(outcomes),
        files_succeeded=succeeded,
        files_failed=failed,
        bytes_downloaded=total_bytes,
        duration_ms=round(duration * 1000, 2),
    )
    return 0 if failed == 0 else 1


def run_download(session: Session, config: FtpClientConfig, args: argparse.Namespace) -> int:
    dest = args.dest or config.local_directory
    downloader = ChunkedDownloader(
        session,
        chunk_size=config.chunk_size,
        retry_config=config.transient_retry,
        observer=LoggingObserver(),
        remove_partial_on_failure=config.remove_partial_on_failure,
    )
    outcome = downloader.download(args.remote, dest)
    return 0 if outcome.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(PROJECT_ROOT / ".env")

    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            Path(args.config) if args.config else None,
            overrides=_overrides(args),
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        name="ftpfetch",
        host=config.host,
        log_dir=Path(config.logging.log_dir),
        json_format=config.logging.json_format,
        console_level=args.log_level or config.logging.console_level,
        file_level=config.logging.file_level,
        log_to_stdout=args.log_to_stdout or config.logging.log_to_stdout,
    )

    result = open_session(config, observer=LoggingObserver())
    if not result.ok:
        return 1

    with result.session as session:
        with LogContext(session_id=session.session_id, host=session.host, operation=args.command):
            try:
                if args.command == "list":
                    return run_list(session, args)
                if args.command == "fetch":
                    return run_fetch(result, config, args)
                return run_download(session, config, args)
            except FtpClientError as e:
                log_exception(logger, e, f"{args.command} failed", include_traceback=False)
                return 1


if __name__ == "__main__":
    sys.exit(main())
