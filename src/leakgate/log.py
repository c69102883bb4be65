"""Logging setup for the leakgate CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "leakgate"


def setup_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Route leakgate log records through rich.

    Warnings (skipped strategies, git failures) are always shown; ``verbose``
    adds debug output such as engine command lines and state transitions.
    Calling this again replaces the previous handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
