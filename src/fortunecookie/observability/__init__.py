"""Observability module for fortunecookie.

Provides structured logging and per-call LLM logging.
"""

from fortunecookie.observability.call_logger import CallLogEntry, CallLogger
from fortunecookie.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
)

__all__ = [
    "CallLogEntry",
    "CallLogger",
    "close_file_logging",
    "configure_logging",
    "get_logger",
]
