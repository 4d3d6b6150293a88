"""Structured logging setup for orgtree."""

import os
from pathlib import Path
from typing import IO, Any, Optional

import structlog

DEFAULT_LOG_FILE = Path.home() / ".cache" / "orgtree" / "logs" / "orgtree.log"

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_log_stream: Optional[IO[str]] = None


def configure_logging(log_file: Optional[Path] = None) -> Path:
    """
    Configure structlog to append JSON lines to ``log_file``.

    The file is taken from the argument, then ORGTREE_LOG_FILE, then
    ~/.cache/orgtree/logs/orgtree.log. ORGTREE_LOG_LEVEL picks the level:
    - DEBUG: Parse progress, individual buffer writes
    - INFO: Document loads and saves (default)
    - WARNING: Rejected edits (e.g. promoting a top level headline)
    - ERROR: Unreadable files, failed or conflicting writes

    Calling it again closes the previously opened log file.

    Returns:
        The log file in use

    Example:
        ORGTREE_LOG_LEVEL=DEBUG orgtree show notes.org
        tail -f ~/.cache/orgtree/logs/orgtree.log | jq .
    """
    global _log_stream

    if log_file is None:
        env_file = os.environ.get("ORGTREE_LOG_FILE")
        log_file = Path(env_file) if env_file else DEFAULT_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)

    log_level = os.environ.get("ORGTREE_LOG_LEVEL", "INFO").upper()
    if log_level not in VALID_LEVELS:
        log_level = "INFO"

    if _log_stream is not None:
        _log_stream.close()
    _log_stream = open(log_file, "a", encoding="utf-8")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=_log_stream),
        cache_logger_on_first_use=False,
    )
    return log_file


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)
    """
    return structlog.get_logger(name)
