"""
Logging configuration for the reminders occurrence service.
Every module logs through a child of the application logger, which owns
a colored console handler and a rotating file handler.
"""

import logging
import logging.handlers
import colorlog
from config.settings import (
    APP_LOGGER_NAME,
    DEBUG_MODE,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    LOG_FILE_NAME,
    LOGS_DIR,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s" + LOG_FORMAT,
        datefmt=DATE_FORMAT,
        log_colors=LEVEL_COLORS
    ))
    return handler


def _file_handler() -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        LOGS_DIR / LOG_FILE_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT
    )
    handler.setLevel(logging.DEBUG)  # Always log DEBUG to file
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level: int = None) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        level: Console logging level (defaults based on DEBUG_MODE)

    Returns:
        Configured application logger
    """
    if level is None:
        level = logging.DEBUG if DEBUG_MODE else logging.INFO

    logger = logging.getLogger(APP_LOGGER_NAME)

    # Prevent duplicate handlers if called multiple times
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.addHandler(_console_handler(level))
    logger.addHandler(_file_handler())

    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    return logger


def set_console_level(level) -> None:
    """
    Change the console verbosity at runtime (e.g. for --debug).

    Args:
        level: Logging level name or number
    """
    for handler in setup_logging().handlers:
        if not isinstance(handler, logging.handlers.RotatingFileHandler):
            handler.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the application logger, configuring it on first use.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return setup_logging().getChild(name)
