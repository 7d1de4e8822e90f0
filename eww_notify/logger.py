"""
Logging setup for the daemon.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False


def configure(level: str = "INFO", log_path: Optional[Path] = None) -> None:
    """
    Configure loguru for the daemon.

    Replaces the default sink with stderr at `level` and, when `log_path` is
    given, adds a rotating file sink at DEBUG. Only the first call has effect.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return

    _logger.remove()
    if sys.stderr is not None:
        _logger.add(sys.stderr, level=level, enqueue=True)
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            log_path,
            level="DEBUG",
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    return _logger
