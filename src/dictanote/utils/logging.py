"""Structured logging setup for Dictanote."""

import structlog
from pathlib import Path
from typing import Any, Optional
import os


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure structlog for JSON logging to ~/.cache/dictanote/logs/dictanote.log.

    Log level comes from the level argument (the CLI passes DEBUG for
    --verbose), else the DICTANOTE_LOG_LEVEL environment variable:
    - Set to "DEBUG" to see every routed response and history operation
    - Defaults to "INFO" if not set

    Log levels:
    - DEBUG: LLM request payloads, raw responses, history pushes, diff counts
    - INFO: Routed responses, staged/resolved suggestions, saves
    - WARNING: Malformed AI payloads, retries, discarded responses
    - ERROR: Collaborator failures, persistence failures

    Example:
        # Enable debug logging
        export DICTANOTE_LOG_LEVEL=DEBUG
        dictanote edit groceries

        # View logs with jq for readability:
        tail -f ~/.cache/dictanote/logs/dictanote.log | jq .
    """
    log_dir = Path.home() / ".cache" / "dictanote" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "dictanote.log"

    log_level = (level or os.environ.get("DICTANOTE_LOG_LEVEL", "INFO")).upper()

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
    if log_level not in valid_levels:
        log_level = "INFO"

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
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("response_routed", kind="append", outcome="appended")
    """
    return structlog.get_logger(name)
