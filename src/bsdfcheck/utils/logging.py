from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def get_logger(name: str = "bsdfcheck", level: int = logging.INFO) -> logging.Logger:
    """Return a Rich-configured logger for the project.

    Log records go to stderr so that reports printed on stdout stay parseable.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )
    return logging.getLogger(name)
