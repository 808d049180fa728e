"""
Logging setup: Rich console output plus a daily rotating log file.

Pipeline components log through the root logger; the scheduler loop and the
HTTP layer share the same handlers. uvicorn's own loggers are routed to the
root handlers instead of their default stream handlers.
"""

import logging
import logging.handlers
from typing import List

from rich.console import Console
from rich.logging import RichHandler

from .config import Settings

FILE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Loggers that are chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


def _console_handler(settings: Settings) -> RichHandler:
    handler = RichHandler(
        console=Console(width=120),
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(settings.log_level)
    return handler


def _file_handler(settings: Settings) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=settings.log_file_path,
        when="midnight",
        backupCount=settings.log_retention_days,
        encoding="utf-8",
    )
    handler.setLevel(settings.log_level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(settings: Settings) -> List[logging.Handler]:
    """
    Install the console and file handlers on the root logger.

    Calling it again replaces the handlers instead of stacking them.

    Returns:
        The installed handlers
    """
    settings.log_directory.mkdir(parents=True, exist_ok=True)

    handlers = [_console_handler(settings), _file_handler(settings)]

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(
        f"Logging to {settings.log_file_path} at {settings.log_level}, "
        f"keeping {settings.log_retention_days} days"
    )
    return handlers
