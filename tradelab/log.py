"""
Logging setup for tradelab runs.
"""
import logging
import os
import sys

from tradelab.config import LoggingConfig

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config: LoggingConfig = None) -> logging.Logger:
    """
    Configures the 'tradelab' logger with a console handler and, when a file
    is configured, a file handler that records everything down to DEBUG.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        config (LoggingConfig): Level and optional log file.

    Returns:
        logging.Logger: The configured package logger.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger("tradelab")

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.file:
        directory = os.path.dirname(config.file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(config.file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(level)

    return logger
