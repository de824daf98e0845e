"""Logging setup: console and rotating JSON file handlers on the root logger."""

import io
import logging
import re
import secrets
import shutil
import sys
import threading
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_LOG_DIR = Path("logs")
DEFAULT_ROTATION_WHEN = "midnight"
DEFAULT_ROTATION_INTERVAL = 1
DEFAULT_BACKUP_COUNT = 7
DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

PLAIN_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"

# Third-party loggers held at WARNING
NOISY_LOGGERS = [
    "dotenv",
]

# Characters not safe in a file name (IPv6 hosts carry colons)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")

_instance_counter = 0
_instance_counter_lock = threading.Lock()


def _get_next_instance_id() -> str:
    """Ordinal id so two setups in one process never share a log file."""
    global _instance_counter
    with _instance_counter_lock:
        instance_id = str(_instance_counter)
        _instance_counter += 1
    return instance_id


class ArchivingTimedRotatingFileHandler(TimedRotatingFileHandler):
    """
    TimedRotatingFileHandler that moves rotated files into an archive folder.

        logs/2026-01-05/ftpfetch_0105_1430_0.log                        (current)
        logs/2026-01-05/archive/ftpfetch_0105_1430_0.log.2026-01-05     (rotated)
    """

    def __init__(
        self,
        filename,
        when="midnight",
        interval=1,
        backupCount=0,
        encoding=None,
        delay=False,
        utc=False,
        archive_dir=None,
    ):
        super().__init__(filename, when, interval, backupCount, encoding, delay, utc)
        self.archive_dir = Path(archive_dir) if archive_dir else Path(self.baseFilename).parent / "archive"
        self.archive_dir.mkdir(parents=True, exist_ok=True)

    def doRollover(self):
        super().doRollover()

        current = Path(self.baseFilename)
        for rotated in current.parent.glob(f"{current.name}.*"):
            try:
                shutil.move(str(rotated), str(self.archive_dir / rotated.name))
            except OSError as e:
                # The logging system is mid-rollover; stderr is the only safe sink
                print(f"Warning: Failed to archive {rotated}: {e}", file=sys.stderr)


def get_log_file_path(
    log_dir: Path,
    name: str = "ftpfetch",
    host: str | None = None,
    instance_id: str | None = None,
) -> Path:
    """
    Build the log file path for one run.

    {log_dir}/{YYYY-MM-DD}/{name}[_{host}]_{MMDD}_{HHMM}_{instance}.log

        logs/2026-01-05/ftpfetch_0105_1430_0.log
        logs/2026-01-05/ftpfetch_ftp.example.net_0105_0930_1.log
    """
    now = datetime.now()
    prefix = name
    if host:
        prefix = f"{name}_{_UNSAFE_FILENAME_CHARS.sub('_', host)}"
    instance = instance_id or _get_next_instance_id()
    return log_dir / now.strftime("%Y-%m-%d") / f"{prefix}_{now:%m%d_%H%M}_{instance}.log"


def _as_level(level) -> int:
    if isinstance(level, str):
        return logging.getLevelName(level.upper())
    return level


def _console_handler() -> logging.StreamHandler:
    stream = sys.stdout
    if sys.platform == "win32":
        # Remote file names can hold characters the Windows console codepage lacks
        stream = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ConsoleFormatter())
    return handler


def _file_handler(
    log_file: Path,
    json_format: bool,
    when: str,
    interval: int,
    backup_count: int,
) -> ArchivingTimedRotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = ArchivingTimedRotatingFileHandler(
        log_file,
        when=when,
        interval=interval,
        backupCount=backup_count,
        encoding="utf-8",
        archive_dir=log_file.parent / "archive",
    )
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FILE_FORMAT))
    return handler


def setup_logging(
    name: str = "ftpfetch",
    host: str | None = None,
    log_dir: Path | None = None,
    json_format: bool = True,
    console_level: int = DEFAULT_CONSOLE_LEVEL,
    file_level: int = DEFAULT_FILE_LEVEL,
    rotation_when: str = DEFAULT_ROTATION_WHEN,
    rotation_interval: int = DEFAULT_ROTATION_INTERVAL,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    suppress_noisy: bool = True,
    log_to_stdout: bool = False,
) -> logging.Logger:
    """
    Replace the root logger's handlers with a console handler and, unless
    log_to_stdout, an archiving rotating file handler.

    Args:
        name: Logger name and log file prefix
        host: FTP host, added to the log file name
        log_dir: Base directory for log files (default: ./logs)
        json_format: JSON lines in the file instead of plain text
        console_level: Console level, int or name (default: INFO)
        file_level: File level, int or name (default: DEBUG). In
            log_to_stdout mode the console uses this level instead.
        rotation_when: TimedRotatingFileHandler ``when`` ('midnight', 'H', ...)
        rotation_interval: Rotation interval
        backup_count: Rotated files to keep
        suppress_noisy: Hold NOISY_LOGGERS at WARNING
        log_to_stdout: Skip the file handler entirely

    Returns:
        The logger called ``name``
    """
    console_level = _as_level(console_level)
    file_level = _as_level(file_level)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console = _console_handler()
    log_file = None
    if log_to_stdout:
        console.setLevel(file_level)
    else:
        console.setLevel(console_level)
        log_file = get_log_file_path(log_dir or DEFAULT_LOG_DIR, name=name, host=host)
        file_handler = _file_handler(
            log_file, json_format, rotation_when, rotation_interval, backup_count
        )
        file_handler.setLevel(file_level)
        root.addHandler(file_handler)
    root.addHandler(console)

    if suppress_noisy:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    if log_file is None:
        logger.debug("Logging initialized: stdout-only mode")
    else:
        logger.debug(f"Logging initialized: file={log_file}, json={json_format}")
    return logger


def generate_session_id() -> str:
    """Session id of the form s-YYYYMMDD-HHMMSS-xxxx (random hex suffix)."""
    return f"s-{datetime.now():%Y%m%d-%H%M%S}-{secrets.token_hex(2)}"
