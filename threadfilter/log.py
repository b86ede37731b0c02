"""Diagnostic logging to stderr through rich."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "threadfilter"


def configure_logging(verbose: bool = False) -> None:
    """Send ``threadfilter.*`` log records to stderr.

    WARNING and above by default, parser transitions too with ``verbose``.
    Safe to call more than once; the previous handler is replaced.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
