from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

from eww_notify import logger as app_logger
from eww_notify.bootstrap import build_daemon_system
from eww_notify.constants import APP_NAME, APP_VERSION, IPC_SOCKET_PATH
from eww_notify.core.config.yaml_config import load_app_config
from eww_notify.core.errors import MalformedCommandError, NotificationError
from eww_notify.transport.control_client import send_command
from eww_notify.transport.control_protocol import (
    ActionCommand,
    CloseCommand,
    ControlCommand,
    KillCommand,
    parse_notification_id,
)

_LOGGER = app_logger.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eww-notify",
        description="Notification daemon publishing to eww.",
        epilog=(
            "examples:\n"
            "  eww-notify                    # start daemon\n"
            "  eww-notify --stop             # stop daemon\n"
            "  eww-notify --close 123        # close notification 123\n"
            "  eww-notify --action '123 ok'  # invoke 'ok' on notification 123"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--stop", action="store_true", help="stop the notification daemon")
    mode.add_argument("--close", metavar="ID", help="close notification by ID")
    mode.add_argument("--action", metavar="'ID KEY'", help="invoke an action (format: 'id actionkey')")
    mode.add_argument("--version", action="store_true", help="show version information")
    parser.add_argument("--config", metavar="PATH", help="path to config.yaml")
    parser.add_argument("--socket", metavar="PATH", help="control socket path (client modes)")
    return parser


def command_from_args(args: argparse.Namespace) -> Optional[ControlCommand]:
    """
    Build the client command selected on the command line.

    Returns None when no client mode was requested (run the daemon).

    Raises
    ------
    MalformedCommandError
        If an id or the action argument is invalid.
    """
    if args.stop:
        return KillCommand()
    if args.close is not None:
        return CloseCommand(notification_id=parse_notification_id(args.close))
    if args.action is not None:
        parts = args.action.split()
        if len(parts) != 2:
            raise MalformedCommandError("action requires format 'id actionkey'")
        return ActionCommand(notification_id=parse_notification_id(parts[0]), action_key=parts[1])
    return None


def _socket_path(args: argparse.Namespace) -> str:
    if args.socket:
        return args.socket
    try:
        return load_app_config(args.config).control_socket
    except (OSError, ValueError):
        return IPC_SOCKET_PATH


def run_client(cmd: ControlCommand, path: str) -> int:
    try:
        send_command(cmd, path)
    except NotificationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if isinstance(cmd, KillCommand):
        print("Stop command sent to daemon")
    elif isinstance(cmd, CloseCommand):
        print(f"Close command sent for notification {cmd.notification_id}")
    else:
        print(f"Action command sent for notification {cmd.notification_id}")
    return 0


def run_daemon(config_path: Optional[str]) -> int:
    """
    Run the daemon until SIGINT/SIGTERM or a ``kill`` control command.
    """
    cfg = load_app_config(config_path)
    app_logger.configure(
        level=cfg.logging.level,
        log_path=Path(cfg.logging.file).expanduser() if cfg.logging.file else None,
    )

    wiring = build_daemon_system(cfg=cfg)
    runtime = wiring.runtime

    try:
        runtime.start()
    except NotificationError as e:
        _LOGGER.error("Failed to start daemon: {}", e)
        runtime.stop()
        return 1

    def _on_signal(signum, _frame) -> None:
        _LOGGER.info("Received signal {}, shutting down daemon...", signal.Signals(signum).name)
        runtime.request_shutdown()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    _LOGGER.info("Daemon is running. Press Ctrl+C to stop.")
    # Short waits keep the main thread responsive to signals.
    while not runtime.wait_for_shutdown(timeout=0.5):
        pass

    runtime.stop()
    if runtime.fatal_error is not None:
        _LOGGER.error("Daemon stopped after internal error: {}", runtime.fatal_error)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"{APP_NAME} v{APP_VERSION}")
        return 0

    try:
        cmd = command_from_args(args)
    except MalformedCommandError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if cmd is not None:
        return run_client(cmd, _socket_path(args))

    try:
        return run_daemon(args.config)
    except (OSError, ValueError) as e:
        print(f"Failed to start daemon: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
