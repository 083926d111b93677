"""Console logging setup."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False, quiet: bool = False, console: Console = None) -> None:
    """
    Route standard logging through rich.

    Args:
        verbose: Log at DEBUG level
        quiet: Log warnings and errors only (wins over verbose)
        console: Console to log to (default: a new stderr console)
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
