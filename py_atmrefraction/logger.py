"""Logging configuration and utilities for py_atmrefraction.

The module exposes a pre-configured logger instance and utility functions for managing
file-based logging. By default only console logging is enabled, at INFO level.

Examples:
    ```python
    from py_atmrefraction.logger import logger, enable_file_logging, disable_file_logging

    enable_file_logging("refraction_debug.log")
    logger.debug("Integrator step details go to the file")
    disable_file_logging()
    ```
"""
import logging
from typing import Optional

__all__ = ('logger',
           'enable_file_logging',
           'disable_file_logging',
)

formatter = logging.Formatter("%(levelname)s:%(name)s:%(message)s")
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
console_handler.setLevel(logging.DEBUG)  # Lowest level for console

logger: logging.Logger = logging.getLogger('py_atmrefr')
logger.addHandler(console_handler)
logger.setLevel(logging.INFO)

# File handler (optional, added dynamically)
file_handler: Optional[logging.FileHandler] = None


def enable_file_logging(filename: str = "refraction.log") -> None:
    """Enable logging to a file with DEBUG level output.

    Replaces any file handler installed by a previous call. The file is opened in append mode.

    Args:
        filename: Name of the log file. Relative paths resolve against the working directory.
    """
    global file_handler
    if file_handler is not None:
        disable_file_logging()

    file_handler = logging.FileHandler(filename)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter("%(asctime)s:%(levelname)s:%(message)s"))
    logger.addHandler(file_handler)


def disable_file_logging() -> None:
    """Remove the file handler, if any, and close its file."""
    global file_handler
    if file_handler is not None:
        logger.removeHandler(file_handler)
        file_handler.close()
        file_handler = None
