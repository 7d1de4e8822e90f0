from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import List

from loguru import logger

from eww_notify.constants import EWW_BINARY
from eww_notify.core.errors import CollaboratorError


@dataclass
class EwwClient:
    """
    Thin wrapper around the ``eww`` command line.

    Notes
    -----
    - Each call runs one short-lived ``eww`` process and waits for it.
    - A non-zero exit, a timeout or a missing binary is raised as
      `CollaboratorError`; the caller decides whether it is fatal.

    Parameters
    ----------
    binary
        Name or path of the eww executable.
    timeout_s
        Upper bound on a single eww invocation.
    """

    binary: str = EWW_BINARY
    timeout_s: float = 5.0

    def publish(self, key: str, value: str) -> None:
        """Set an eww variable (``eww update key=value``)."""
        self._run(["update", f"{key}={value}"])

    def show_window(self, name: str) -> None:
        self._run(["open", name])

    def hide_window(self, name: str) -> None:
        self._run(["close", name])

    def _run(self, args: List[str]) -> None:
        cmd = [self.binary, *args]
        try:
            subprocess.run(cmd, capture_output=True, check=True, timeout=self.timeout_s)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise CollaboratorError(f"eww {args[0]} failed ({e.returncode}): {stderr}") from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise CollaboratorError(f"eww {args[0]} failed: {e}") from e
        logger.trace("eww {} ok", args[0])
