"""
Structured logging for the advisor, built on structlog.

Every log line goes to stderr. Stdout is reserved for the rendered
recommendation so the CLI output can be piped.
"""
import sys
import logging
import structlog
from pathlib import Path
from typing import Optional

# Loggers of the HTTP stack that are only useful when debugging requests
HTTP_LOGGERS = ('urllib3', 'requests')


def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    json_output: bool = False
):
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name for the advisor's own loggers
        log_file: Optional file that receives a copy of every record
        json_output: Render records as JSON lines instead of console text

    The HTTP client loggers stay at WARNING unless DEBUG is requested.
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)

    http_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str):
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
