"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_session_id: ContextVar[str] = ContextVar("session_id", default="")
_host: ContextVar[str] = ContextVar("host", default="")
_operation: ContextVar[str] = ContextVar("operation", default="")
_remote_path: ContextVar[str] = ContextVar("remote_path", default="")


def set_log_context(
    session_id: Optional[str] = None,
    host: Optional[str] = None,
    operation: Optional[str] = None,
    remote_path: Optional[str] = None,
) -> None:
    if session_id is not None:
        _session_id.set(session_id)
    if host is not None:
        _host.set(host)
    if operation is not None:
        _operation.set(operation)
    if remote_path is not None:
        _remote_path.set(remote_path)


def get_log_context() -> Dict[str, str]:
    return {
        "session_id": _session_id.get(),
        "host": _host.get(),
        "operation": _operation.get(),
        "remote_path": _remote_path.get(),
    }


def clear_log_context() -> None:
    _session_id.set("")
    _host.set("")
    _operation.set("")
    _remote_path.set("")
