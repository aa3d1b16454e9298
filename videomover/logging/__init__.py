"""Logging package with Rich-based progress reporting."""
import logging

from rich.console import Console
from rich.logging import RichHandler

from .rich_logger import RichProgressReporter, QuietProgressReporter

__all__ = ["RichProgressReporter", "QuietProgressReporter", "setup_logging"]


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route library logging through Rich on stderr."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)
