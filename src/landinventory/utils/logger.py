"""
Logging Configuration

structlog over the standard library. Every event is a snake_case name with
keyword context; the environment and service name are added to each entry,
plus whatever is bound with ``log_context`` (request path, request id).
"""
import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, List

import structlog
from structlog.types import EventDict, Processor

from config.settings import settings

SERVICE_NAME = "land_inventory"

_configured = False


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add environment and service name to all log entries."""
    event_dict["environment"] = settings.environment
    event_dict["service"] = SERVICE_NAME
    return event_dict


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _renderers() -> List[Processor]:
    if settings.log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.processors.ExceptionRenderer(), structlog.dev.ConsoleRenderer()]


def setup_logging(force: bool = False) -> structlog.BoundLogger:
    """
    Configure structured logging once per process.

    SQLAlchemy's own engine logger stays at WARNING unless
    ``database_echo`` is enabled.

    Args:
        force: Reconfigure even if logging was already set up

    Returns:
        Configured structlog logger instance
    """
    global _configured
    if _configured and not force:
        return structlog.get_logger()

    level = _resolve_level(settings.log_level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=force)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            add_app_context,
            *_renderers(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True

    return structlog.get_logger()


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str = None) -> structlog.BoundLogger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name) if name else structlog.get_logger()
