"""Logging configuration for the installctl package."""
import logging
import sys
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Libraries that log every HTTP round trip at DEBUG/INFO
NOISY_LOGGERS = ('urllib3', 'kubernetes', 'requests')


def setup_logging(debug_mode: bool = False, level: Union[int, str] = logging.INFO) -> None:
    """Configure root logging for the controller process.

    Args:
        debug_mode: Force DEBUG level and keep library loggers verbose
        level: Level used when not in debug mode (name or number)
    """
    log_level = logging.DEBUG if debug_mode else level
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Disable debug logging for noisy libraries
    if not debug_mode:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Set up a logger with the specified name and log level.

    Used when a component runs without the CLI having configured logging.

    Args:
        name: The name of the logger
        level: The logging level (default: inherit from the root logger)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)

    # Don't add handlers if they're already configured
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger
