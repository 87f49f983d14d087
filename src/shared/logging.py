"""Logging setup for the API process and the background runner.

Stdlib handlers write to stdout and two rotating files (everything, and
errors only) under ``log_dir``. structlog renders JSON in production and
staging and a coloured console view elsewhere; both carry whatever
contextvars the caller bound (``loop``, ``order_id``).
"""

import logging
import logging.handlers
import sys
from pathlib import Path

import structlog

from shared.config import Settings, get_settings

LEVELS_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5


def log_level(settings: Settings) -> str:
    if settings.log_level:
        return settings.log_level.upper()
    return LEVELS_BY_ENVIRONMENT.get(settings.environment.lower(), "INFO")


def wants_json(settings: Settings) -> bool:
    if settings.log_json is not None:
        return settings.log_json
    return settings.environment.lower() in ("production", "staging")


def _rotating_handler(path: Path, level: str | int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(settings: Settings) -> None:
    level = log_level(settings)
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [
        console_handler,
        _rotating_handler(log_dir / "dispatchline.log", level),
        _rotating_handler(log_dir / "dispatchline_error.log", logging.ERROR),
    ]

    # Provider and courier HTTP clients are chatty at DEBUG
    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def setup_structlog(settings: Settings) -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if wants_json(settings):
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=settings.environment.lower() != "test",
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Configure stdlib handlers and structlog for the current environment."""
    settings = settings or get_settings()
    setup_stdlib_logging(settings)
    setup_structlog(settings)
