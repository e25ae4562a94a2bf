"""Logging setup for the harvester.

Library modules only ever call :func:`get_logger`; handlers are installed
once by the CLI through :func:`configure_logging`.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_ROOT_LOGGER = "harvester"


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under ``harvester``."""
    if name == _ROOT_LOGGER or name.startswith(_ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a rich console handler to the ``harvester`` logger.

    Safe to call more than once: an existing :class:`RichHandler` is reused.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.propagate = False
    return logger
