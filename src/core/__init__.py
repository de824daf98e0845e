"""
Core library: Reusable, protocol-agnostic components.

Modules:
    resilience  - Retry policy with capped backoff
    logging     - Structured JSON logging with session context
    errors      - Error classification and exception hierarchy
    utils       - JSON serialization helpers

Design Principles:
    - No dependency on the ftpfetch client package
    - All modules are independently testable
    - Type hints throughout
"""

from .types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
]
