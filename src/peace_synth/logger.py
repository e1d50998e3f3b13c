"""
Package-wide logger for the synthetic control pipeline.
"""

import logging

LOGGER_NAME = "peace_synth"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def get_logger(name: str = LOGGER_NAME, level: int = logging.INFO) -> logging.Logger:
    """
    Return the package logger, installing a stream handler on first use.

    Args:
        name: Logger name
        level: Initial logging level

    Returns:
        Configured logger
    """
    log = logging.getLogger(name)

    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.setLevel(level)
        log.propagate = False

    return log


def set_log_level(level: int | str) -> None:
    """Change the verbosity of the package logger."""
    logger.setLevel(level)


logger = get_logger()
