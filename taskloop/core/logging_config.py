"""Logging setup shared by the CLI and library callers."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import structlog

ROOT_LOGGER_NAME = "taskloop"

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
]


def setup_logging(
    log_level: Union[str, int] = logging.INFO,
    log_format: str = "console",
    log_file: Optional[Path] = None,
) -> None:
    """Configure stdlib logging and structlog for taskloop.

    structlog events are rendered through the stdlib handlers, so plain
    ``logging.getLogger(__name__)`` records and structlog events end up in the
    same stream with the same formatting. Calling this again replaces the
    handlers installed by a previous call.

    Args:
        log_level: Level name or number for the console handler
        log_format: "console" for human readable output, "json" for one JSON
            object per line
        log_file: Optional file that receives every record at DEBUG as JSON
    """
    if isinstance(log_level, str):
        log_level = logging.getLevelName(log_level.upper())

    structlog.configure(
        processors=_SHARED_PROCESSORS + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    if log_format == "json":
        console_renderer = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(_formatter(console_renderer))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        logger.addHandler(file_handler)


def _formatter(renderer) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
