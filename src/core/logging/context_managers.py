"""Context managers for structured logging."""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from core.errors.exceptions import FtpClientError
from core.logging.context import get_log_context, set_log_context
from core.logging.utilities import log_exception, log_with_context


class LogContext:
    """
    Scope session/operation fields onto every record logged inside the block.

    Fields left as None keep their current value. The previous values are
    put back on exit, including when the block raises.

        with LogContext(session_id=session.session_id, host=session.host):
            fetch_many(...)
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        host: Optional[str] = None,
        operation: Optional[str] = None,
        remote_path: Optional[str] = None,
    ):
        self.fields = {
            key: value
            for key, value in (
                ("session_id", session_id),
                ("host", host),
                ("operation", operation),
                ("remote_path", remote_path),
            )
            if value is not None
        }
        self._saved: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self._saved = get_log_context()
        set_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_log_context(**self._saved)
        return False


class OperationContext:
    """
    Time a block and log one record when it ends.

    A clean exit logs "Completed: <operation>" at ``level``, raised to INFO
    when the block ran longer than ``slow_threshold_ms``. An exception logs
    "Failed: <operation>" through log_exception and is re-raised. Typed
    client errors are logged without a traceback; anything else keeps it.

    When the context holds ``bytes_downloaded`` the record also carries
    ``bytes_per_second``.
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        level: int = logging.DEBUG,
        slow_threshold_ms: Optional[float] = 1000.0,
        log_start: bool = False,
        **context: Any,
    ):
        self.logger = logger
        self.operation = operation
        self.level = (
            getattr(logging, level.upper(), logging.DEBUG) if isinstance(level, str) else level
        )
        self.slow_threshold_ms = slow_threshold_ms
        self.log_start = log_start
        self.context = context
        self._started: Optional[float] = None

    def add_context(self, **kwargs: Any) -> None:
        """Attach fields learned during the operation (byte counts, reply codes)."""
        self.context.update(kwargs)

    def _fields(self, duration_ms: float) -> Dict[str, Any]:
        fields = dict(self.context, operation=self.operation, duration_ms=round(duration_ms, 2))
        nbytes = fields.get("bytes_downloaded")
        if isinstance(nbytes, int) and duration_ms > 0:
            fields["bytes_per_second"] = round(nbytes / (duration_ms / 1000))
        return fields

    def __enter__(self) -> "OperationContext":
        self._started = time.perf_counter()
        if self.log_start:
            log_with_context(
                self.logger,
                logging.DEBUG,
                f"Starting: {self.operation}",
                operation=self.operation,
                **self.context,
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = (time.perf_counter() - self._started) * 1000
        fields = self._fields(duration_ms)

        if exc_val is not None:
            log_exception(
                self.logger,
                exc_val,
                f"Failed: {self.operation}",
                include_traceback=not isinstance(exc_val, FtpClientError),
                **fields,
            )
            return False

        level = self.level
        if self.slow_threshold_ms and duration_ms > self.slow_threshold_ms:
            level = max(level, logging.INFO)
        log_with_context(self.logger, level, f"Completed: {self.operation}", **fields)
        return False


@contextmanager
def log_operation(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    slow_threshold_ms: Optional[float] = 1000.0,
    **context: Any,
):
    """Shorthand for ``with OperationContext(...)``."""
    with OperationContext(
        logger, operation, level=level, slow_threshold_ms=slow_threshold_ms, **context
    ) as op:
        yield op
