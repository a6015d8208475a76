# Logging setup shared by the CLI and the web server

import logging
import sys

import coloredlogs

PACKAGE_LOGGER = "check_cert_chain"
LOG_FORMAT = '%(asctime)s [%(levelname)-8s] %(name)s: %(message)s'
DEBUG_LOG_FORMAT = '%(asctime)s [%(levelname)-8s] %(name)s (%(filename)s:%(lineno)d): %(message)s'

_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}


def get_log_level(name: str) -> int:
    """Maps a level name such as 'warn' or 'DEBUG' to a logging level."""
    normalized = (name or "").strip().upper()
    normalized = _LEVEL_ALIASES.get(normalized, normalized)
    level = logging.getLevelName(normalized)
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(loglevel: str = "WARNING", stream=None) -> logging.Logger:
    """
    Configure the package logger.

    coloredlogs is used when the stream is a TTY, a plain StreamHandler otherwise.
    """
    stream = stream or sys.stderr
    level = get_log_level(loglevel)
    log_format = LOG_FORMAT if level > logging.DEBUG else DEBUG_LOG_FORMAT

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if hasattr(stream, 'isatty') and stream.isatty():
        coloredlogs.install(level=level, logger=logger, fmt=log_format, stream=stream)
    else:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(log_format))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
