"""Logging setup: rich console output plus an optional JSONL event file.

Every event is rendered once per handler by ``structlog.stdlib.ProcessorFormatter``:
as ``event key=value ...`` on stderr and as one JSON object per line in
``{log_dir}/debug.jsonl``. Context bound with ``structlog.contextvars``
(the orchestrator binds ``theme`` and ``provider`` for each generation) is
attached to every event logged while it is bound, including events from
provider modules.
"""

from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import EventDict, FilteringBoundLogger, Processor

DEBUG_LOG_NAME = "debug.jsonl"

# Dependencies whose DEBUG output drowns out generation events
NOISY_LOGGERS = ("httpx", "httpcore", "langchain", "langchain_core", "asyncio")

# -v count -> console level
_CONSOLE_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

# RichHandler already shows these
_CONSOLE_HIDDEN_KEYS = frozenset({"timestamp", "level", "logger"})

# Runs for structlog events and for records from plain stdlib loggers alike
_PRE_CHAIN: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]

_configured = False
_file_handler: logging.FileHandler | None = None


def console_level(verbosity: int) -> int:
    """Map a ``-v`` count to a console log level."""
    return _CONSOLE_LEVELS[min(max(verbosity, 0), len(_CONSOLE_LEVELS) - 1)]


def render_console(_logger: Any, _method: str, event_dict: EventDict) -> str:
    """Render an event as ``event key=value ...`` for the console."""
    exception = event_dict.pop("exception", None)
    event = str(event_dict.pop("event", ""))
    fields = []
    for key, value in event_dict.items():
        if key in _CONSOLE_HIDDEN_KEYS:
            continue
        if isinstance(value, str) and (not value or any(c.isspace() for c in value)):
            value = repr(value)
        fields.append(f"{key}={value}")
    line = " ".join([event, *fields])
    return f"{line}\n{exception}" if exception else line


def _formatter(renderer: Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
        foreign_pre_chain=_PRE_CHAIN,
    )


def _console_handler(verbosity: int) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        level=console_level(verbosity),
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        markup=False,
    )
    handler.setFormatter(_formatter(render_console))
    return handler


def _jsonl_handler(log_dir: Path) -> logging.FileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / DEBUG_LOG_NAME, mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer(default=str)))
    return handler


def configure_logging(verbosity: int = 0, log_dir: Path | None = None) -> None:
    """Configure console and file logging.

    Safe to call more than once; a previous file handler is closed first.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG on the console.
        log_dir: If given, every event at DEBUG and above is also appended
            to ``{log_dir}/debug.jsonl``.
    """
    global _configured, _file_handler

    close_file_logging()

    handlers: list[logging.Handler] = [_console_handler(verbosity)]
    if log_dir is not None:
        _file_handler = _jsonl_handler(log_dir)
        handlers.append(_file_handler)

    root_level = min(handler.level for handler in handlers)
    logging.basicConfig(level=root_level, handlers=handlers, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        # Module-level loggers must follow later reconfiguration (e.g. -v)
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    logger: FilteringBoundLogger = structlog.get_logger(name)
    return logger


def close_file_logging() -> None:
    """Detach and close the JSONL file handler, if any."""
    global _file_handler
    if _file_handler is not None:
        logging.getLogger().removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
