"""
Logging setup for BrewConsole.

Console commands and the data layer log through structlog. Each CLI
invocation gets a short correlation id so the requests one command issues
can be grouped in the output.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# httpx logs every request at INFO; the request layer already does
_NOISY_LOGGERS = ("httpx", "httpcore")


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation id to the running context, generating one if needed."""
    value = correlation_id or uuid.uuid4().hex[:8]
    _correlation_id.set(value)
    return value


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def add_correlation_id(logger, method_name, event_dict):
    """structlog processor stamping the current correlation id."""
    correlation_id = _correlation_id.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def setup_logging(debug: bool = False, rich_output: bool = True) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        debug: Log at DEBUG instead of INFO
        rich_output: Render for a terminal with rich; emit JSON lines when False
    """
    level = logging.DEBUG if debug else logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        add_correlation_id,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.dev.set_exc_info,
    ]

    if rich_output:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.rich_traceback)
        )
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler])
    else:
        processors.append(structlog.processors.JSONRenderer())
        logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
