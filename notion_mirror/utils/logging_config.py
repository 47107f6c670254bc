"""Logging setup for the SQLite-to-Notion mirror.

Every module logs snake_case events through structlog
(``cursor_loaded``, ``batch_dispatched``, ``item_delivery_failed``...). The
orchestrator binds a ``pass_id`` context variable for the duration of a pass,
so all lines written by the selector, oracle and dispatcher during that pass
can be correlated. httpx request lines and APScheduler job chatter are kept
at WARNING unless the service itself runs more verbosely.
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    log_file: str | None = None,
) -> None:
    """
    Configure structured logging for the mirror service and its CLI.

    Called once by ``notion-mirror`` before the first pass, with the values of
    the ``logging`` config section. JSON lines go to stdout (and to a rotating
    file when ``log_file`` is set); ``json_logs=False`` switches to the colored
    console renderer for local runs.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON logs. If False, use console format.
        log_file: Optional path to log file. If None, logs only to stdout.

    Example:
        >>> configure_logging(log_level="INFO", json_logs=True)
        >>> log = structlog.stdlib.get_logger()
        >>> with structlog.contextvars.bound_contextvars(pass_id="3f9c0a1b2d4e"):
        ...     log.warning("existence_check_failed", locator="/downloads/a.mp4")
        # stdout: {"pass_id": "3f9c0a1b2d4e", "locator": "/downloads/a.mp4",
        #          "event": "existence_check_failed", "level": "warning", ...}
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        stream=sys.stdout,
        force=True,
    )

    if log_file:
        from logging.handlers import RotatingFileHandler

        # 10MB per file, 5 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.setLevel(numeric_level)
        logging.root.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
    logging.getLogger("apscheduler").setLevel(max(numeric_level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ],
        ),
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a stdlib-backed structlog logger, named after the caller by convention."""
    return structlog.stdlib.get_logger(name)
