"""Console logging for the progressive-overload CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "progressive_overload"


def setup_logging(verbose: bool = False) -> None:
    """Configure the package logger with a Rich handler on stderr."""
    level = logging.DEBUG if verbose else logging.WARNING

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicate output
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
