"""Shared utility functions for the Transaction Tracker project."""

import logging
from datetime import UTC, datetime

import colorlog

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
ROOT_LOGGER = "txn-tracker"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a colorized format for the project.

    Module loggers (``txn-tracker.*``) carry no handlers of their own and propagate
    to the project logger, so console and file handlers configured there see
    every record.
    """
    logger = logging.getLogger(name)
    if name.startswith(f"{ROOT_LOGGER}."):
        get_logger(ROOT_LOGGER)
        logger.propagate = True
        return logger
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def utcnow() -> datetime:
    """Get the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return `value` in UTC, treating naive datetimes as already being UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
