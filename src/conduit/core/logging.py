"""Logging configuration for Conduit."""

import logging
import logging.handlers
import os
from typing import List, Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

from conduit.core.config import settings

QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "alembic")


def _renderer(cli_mode: bool):
    if cli_mode:
        return structlog.processors.KeyValueRenderer(key_order=["event"])
    if settings.is_production():
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def _handlers(cli_mode: bool) -> List[logging.Handler]:
    if settings.is_production():
        console: logging.Handler = logging.StreamHandler()
    else:
        console = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=not cli_mode,
            rich_tracebacks=True,
        )
    handlers = [console]

    if settings.logging.file:
        file_handler = logging.handlers.RotatingFileHandler(
            settings.logging.file,
            maxBytes=settings.logging.max_file_size,
            backupCount=settings.logging.backup_count,
        )
        file_handler.setFormatter(logging.Formatter(settings.logging.format))
        handlers.append(file_handler)
    return handlers


def setup_logging(cli_mode: bool = False) -> None:
    """Route structlog through the standard library.

    In CLI mode only warnings reach the console and events render as bare
    ``key=value`` pairs.
    """
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if not cli_mode:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [structlog.processors.format_exc_info, _renderer(cli_mode)]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = logging.WARNING if cli_mode else getattr(logging, settings.logging.level.upper())
    logging.basicConfig(level=level, handlers=_handlers(cli_mode), force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# The CLI calls setup_logging(cli_mode=True) itself
if not os.environ.get("CONDUIT_CLI_MODE"):
    setup_logging()
