"""Logging setup for the command line."""

from __future__ import annotations

import logging
import os
from typing import Optional

from rich.logging import RichHandler

from .console import err_console


def setup_logging(verbose: int = 0, level: Optional[str] = None) -> None:
    """
    Configure root logging to go through the shared stderr console.

    Args:
        verbose: Count of -v flags. One selects INFO, two or more DEBUG.
        level: Explicit level name; overrides LOG_LEVEL when given.

    Environment variables:
        LOG_LEVEL: Logging level used when no -v flag is passed.
                   Default: WARNING.
    """
    if verbose >= 2:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    else:
        name = (level or os.getenv("LOG_LEVEL", "WARNING")).upper()
        log_level = getattr(logging, name, logging.WARNING)

    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=log_level <= logging.DEBUG,
        markup=False,
    )
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
