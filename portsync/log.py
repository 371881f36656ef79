"""Logging setup — stdlib loggers rendered through rich on stderr."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_CONFIGURED = False


def configure_logging(verbose: bool = False) -> None:
    """Attach a RichHandler to the ``portsync`` logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _CONFIGURED
    logger = logging.getLogger("portsync")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if _CONFIGURED:
        return
    _CONFIGURED = True

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
