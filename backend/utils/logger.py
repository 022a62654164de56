"""Process-wide logging for the assignment engine."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from backend.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def _resolve_level(level: Optional[str]) -> int:
    name = (level or get_settings().log_level or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    # getLevelName returns "Level X" for names it does not know
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> None:
    """Install the pipe-delimited stdout handler once.

    Solver runs, draft moves and confirmations then read as one timeline.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=_resolve_level(level),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
