"""
Logging Configuration
Sets up the package logger for command line runs.
"""
import logging
import sys
from typing import Optional


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the logger for the ``orbitalsim`` namespace.

    Parameters
    ----------
    level : int, optional
        Logging level, e.g. ``logging.DEBUG`` or ``logging.INFO``.
    log_file : str, optional
        Path that log records are also written to.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    logger = logging.getLogger("orbitalsim")
    logger.setLevel(level)

    # Repeated calls replace the handlers instead of stacking them
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
