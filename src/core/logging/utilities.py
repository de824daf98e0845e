"""Logging utility functions."""

import logging
from typing import Any

# Reserved LogRecord attribute names that cannot be used in extra dict
_RESERVED_LOG_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "asctime",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Additional context fields (remote_path, duration_ms, etc.)
                  Note: exc_info=True is supported and handled specially.

    Example:
        log_with_context(
            logger, logging.INFO, "Download complete",
            remote_path=remote_file,
            bytes_downloaded=total,
        )
    """
    # exc_info is a direct parameter to log(), not extra
    exc_info = kwargs.pop("exc_info", None)

    # Filter out reserved keys to prevent LogRecord conflicts
    extra = {k: v for k, v in kwargs.items() if k not in _RESERVED_LOG_KEYS}

    logger.log(level, msg, exc_info=exc_info, extra=extra)


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Automatically extracts error_category from FtpClientError subclasses.

    Args:
        logger: Logger instance
        exc: Exception to log
        msg: Context message
        level: Log level (default: ERROR)
        include_traceback: Include full traceback (default: True)
        **kwargs: Additional context fields
    """
    error_category = kwargs.get("error_category")
    if error_category is None and hasattr(exc, "category"):
        cat = exc.category
        kwargs["error_category"] = cat.value if hasattr(cat, "value") else str(cat)

    reply = getattr(exc, "reply", None)
    if reply and "reply" not in kwargs:
        kwargs["reply"] = reply

    error_msg = str(exc)
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."
    kwargs["error_message"] = error_msg
    kwargs.setdefault("error_type", type(exc).__name__)

    extra = {k: v for k, v in kwargs.items() if k not in _RESERVED_LOG_KEYS}
    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=extra)
    else:
        logger.log(level, msg, extra=extra)


def format_batch_summary(
    requested: int,
    succeeded: int,
    failed: int,
    total_bytes: int = 0,
    duration_seconds: float | None = None,
) -> str:
    """
    Format a one-line summary of a batch of transfers.

    Example:
        >>> format_batch_summary(3, 2, 1, total_bytes=2048)
        'Transferred 2/3 files (failed=1, bytes=2048)'
        >>> format_batch_summary(2, 2, 0, total_bytes=4096, duration_seconds=2.0)
        'Transferred 2/2 files (bytes=4096) | 2.0 KiB/s'
    """
    details = []
    if failed > 0:
        details.append(f"failed={failed}")
    details.append(f"bytes={total_bytes}")

    summary = f"Transferred {succeeded}/{requested} files ({', '.join(details)})"

    if duration_seconds:
        rate = total_bytes / duration_seconds / 1024
        summary += f" | {rate:.1f} KiB/s"

    return summary
