"""Structured logging for issuegraph.

Events are snake_case names with key/value context rendered by structlog
through the standard library logger, so rendered graphs on stdout never mix
with log lines on stderr. Each CLI invocation binds its command, root item and
a short correlation id, which then appear on every event it produces,
including events logged deep inside the stores and the tracker clients.

Example:
    >>> from issuegraph.log_config import configure_logging, get_logger
    >>> configure_logging(level="INFO")
    >>> logger = get_logger(__name__)
    >>> logger.info("dependency_added", source="12", target="7")
"""

import logging
import sys
import uuid
from typing import Any

import structlog

# Chatty HTTP client loggers; their request lines only show at DEBUG
LIBRARY_LOGGERS = ("github", "urllib3", "httpx", "httpcore")

CORRELATION_ID_LENGTH = 12


def _library_level(level: int) -> int:
    if level <= logging.DEBUG:
        return level
    return max(level, logging.WARNING)


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and the HTTP client loggers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, emit one JSON object per event; otherwise use the
            colored console renderer

    Raises:
        ValueError: If an invalid log level is provided
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        msg = f"Invalid log level: {level}"
        raise ValueError(msg)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)
    # basicConfig leaves existing handlers and their level alone
    logging.getLogger().setLevel(numeric_level)
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(_library_level(numeric_level))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (typically __name__ of the calling module)
    """
    return structlog.get_logger(name)


def bind_command_context(
    command: str,
    item_id: str | None = None,
    correlation_id: str | None = None,
) -> str:
    """Bind the running command to every subsequent event.

    Args:
        command: CLI command name
        item_id: Root item the command operates on
        correlation_id: Identifier shared by all events of this run; a random
            one is generated when omitted

    Returns:
        The bound correlation id
    """
    correlation_id = correlation_id or uuid.uuid4().hex[:CORRELATION_ID_LENGTH]
    context: dict[str, Any] = {"command": command, "correlation_id": correlation_id}
    if item_id is not None:
        context["item_id"] = item_id
    structlog.contextvars.bind_contextvars(**context)
    return correlation_id


def clear_context() -> None:
    """Clear all context variables from the logging context."""
    structlog.contextvars.clear_contextvars()
