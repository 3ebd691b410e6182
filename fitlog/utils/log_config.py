"""Route standard logging through the CLI's rich console."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def log_level(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def configure_logging(console: Console, verbose: bool = False, quiet: bool = False) -> None:
    """Install one RichHandler on the ``fitlog`` logger."""
    logger = logging.getLogger("fitlog")
    logger.setLevel(log_level(verbose, quiet))
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
