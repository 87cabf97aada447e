"""Logging setup for applications embedding flowchat.

Library modules only create loggers (``logging.getLogger(__name__)``) under
the ``flowchat`` namespace; attaching handlers is left to the application,
which may call :func:`configure_logging` once at startup.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the ``flowchat`` logger, once."""
    logger = logging.getLogger("flowchat")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


__all__ = (
    "LOG_FORMAT",
    "configure_logging",
)
