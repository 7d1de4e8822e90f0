from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from eww_notify.core.engine import NotificationEngine
from eww_notify.core.errors import NotificationError
from eww_notify.domain.models import CloseReason
from eww_notify.transport.control_protocol import (
    ActionCommand,
    CloseCommand,
    ControlCommand,
    KillCommand,
    parse_command,
)


class ControlDispatcher:
    """
    Map control-channel commands onto engine operations.

    Responsibilities
    ----------------
    - Parse one line at a time (`parse_command`).
    - ``close <id>`` -> ``engine.close(id, DISMISSED)``
    - ``action <id> <key>`` -> ``engine.invoke_action(id, key)``
    - ``kill`` -> the shutdown hook supplied by the runtime.

    Error Policy
    ------------
    Malformed input and unknown ids are logged and swallowed: one bad line
    never terminates its connection or the dispatcher.

    Parameters
    ----------
    engine
        Shared notification engine.
    on_kill
        Callback scheduling asynchronous shutdown; it must not block.
    """

    def __init__(self, engine: NotificationEngine, on_kill: Callable[[], None]):
        self._engine = engine
        self._on_kill = on_kill

    def handle_line(self, line: str) -> Optional[ControlCommand]:
        """
        Parse and execute one command line.

        Returns
        -------
        ControlCommand or None
            The executed command, or None if the line failed.
        """
        try:
            cmd = parse_command(line)
            self.dispatch(cmd)
        except NotificationError as e:
            logger.warning("Failed to handle control command {!r}: {}", line, e)
            return None
        return cmd

    def dispatch(self, cmd: ControlCommand) -> None:
        """
        Execute a parsed command.

        Raises
        ------
        NotFoundError
            If a close/action command references an unknown id.
        """
        if isinstance(cmd, KillCommand):
            logger.info("Received kill command, shutting down daemon...")
            self._on_kill()
        elif isinstance(cmd, CloseCommand):
            self._engine.close(cmd.notification_id, CloseReason.DISMISSED)
        elif isinstance(cmd, ActionCommand):
            self._engine.invoke_action(cmd.notification_id, cmd.action_key)
