import logging
import sys
from datetime import datetime

from .config import LOG_FILE, LOG_LEVEL

ROOT_LOGGER_NAME = "sitediff"


class ComparisonFormatter(logging.Formatter):
    """
    Formats records as:
    [ Tue Jan 06 05:32:41 AM 2026 ] : INFO : resources : Message
    """

    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p %Y")

        # Context is the module part of the logger name, or an explicit extra
        context = getattr(record, "context", None) or record.name.rsplit(".", 1)[-1]

        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logger(name=ROOT_LOGGER_NAME, log_file=LOG_FILE, level=LOG_LEVEL):
    """Sets up a logger with the package format."""
    logger = logging.getLogger(name)

    # Child loggers propagate to the package root logger
    if name != ROOT_LOGGER_NAME:
        logger.propagate = True
        setup_logger(ROOT_LOGGER_NAME, log_file=log_file, level=level)
        return logger

    logger.setLevel(level)

    # Avoid duplicate handlers if setup_logger is called multiple times
    if logger.handlers:
        return logger

    formatter = ComparisonFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """Return a child logger of the package root, e.g. ``sitediff.tree``."""
    short_name = module_name.rsplit(".", 1)[-1]
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{short_name}")
