from __future__ import annotations

import socket

from eww_notify.constants import IPC_SOCKET_PATH
from eww_notify.core.errors import DaemonNotRunningError
from eww_notify.transport.control_protocol import ControlCommand, format_command


def send_command(command: ControlCommand, path: str = IPC_SOCKET_PATH, timeout_s: float = 5.0) -> None:
    """
    Send one command line to a running daemon.

    The control channel is fire-and-forget: nothing is read back.

    Parameters
    ----------
    command
        Parsed command to send.
    path
        Filesystem path of the daemon's control socket.
    timeout_s
        Connect/send timeout in seconds.

    Raises
    ------
    DaemonNotRunningError
        If the socket cannot be reached.
    """
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout_s)
    try:
        try:
            sock.connect(path)
        except OSError as e:
            raise DaemonNotRunningError(f"daemon is not running ({path}): {e}") from e
        sock.sendall((format_command(command) + "\n").encode("utf-8"))
    finally:
        sock.close()
