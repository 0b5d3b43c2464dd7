"""Logging setup for CLI runs.

Library modules only create loggers; handlers are attached here, once,
by the command-line entry point.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a Rich handler writing to stderr to the package logger.

    Args:
        verbose: Log at DEBUG instead of INFO

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("gql_pycli")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_time=False,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
