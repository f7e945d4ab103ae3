"""Logging configuration for the ordered tree tools."""

import sys

from loguru import logger

PLAIN_FORMAT = "{level.icon} {message}"
# Debug output comes from several engine layers, so say which one spoke.
DEBUG_FORMAT = "{level.icon} <dim>{name}:{function}</dim> {message}"


def log_level(*, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the stderr level for the given CLI flags."""
    if verbose and quiet:
        msg = "verbose and quiet logging are mutually exclusive"
        raise ValueError(msg)
    if verbose:
        return "DEBUG"
    if quiet:
        return "WARNING"
    return "INFO"


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Route loguru to stderr at the level the flags ask for."""
    level = log_level(verbose=verbose, quiet=quiet)
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=DEBUG_FORMAT if verbose else PLAIN_FORMAT,
    )
