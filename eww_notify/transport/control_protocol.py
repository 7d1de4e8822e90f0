from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

from eww_notify.constants import MAX_NOTIFICATION_ID
from eww_notify.core.errors import MalformedCommandError


@dataclass(frozen=True)
class KillCommand:
    """Shut the daemon down."""


@dataclass(frozen=True)
class CloseCommand:
    notification_id: int


@dataclass(frozen=True)
class ActionCommand:
    notification_id: int
    action_key: str


ControlCommand = Union[KillCommand, CloseCommand, ActionCommand]


def parse_notification_id(text: str) -> int:
    """
    Parse a decimal unsigned 32-bit notification id.

    Raises
    ------
    MalformedCommandError
        If the text is not a decimal integer in ``0..0xFFFFFFFF``.
    """
    if not (text.isascii() and text.isdigit()):
        raise MalformedCommandError(f"invalid notification ID: {text!r}")
    value = int(text)
    if value > MAX_NOTIFICATION_ID:
        raise MalformedCommandError(f"notification ID out of range: {text}")
    return value


def _expect_args(name: str, args: list, count: int, usage: str) -> None:
    if len(args) != count:
        raise MalformedCommandError(f"{name} command requires {usage}")


def parse_command(line: str) -> ControlCommand:
    """
    Parse one control-channel line into a command.

    Supported commands
    ------------------
    - ``kill``
    - ``close <id>``
    - ``action <id> <key>``

    Parameters
    ----------
    line
        One line without its trailing newline.

    Returns
    -------
    ControlCommand
        Parsed command object.

    Raises
    ------
    MalformedCommandError
        For empty input, unknown commands, wrong arity or an unparsable id.
    """
    parts = line.split()
    if not parts:
        raise MalformedCommandError("empty command")

    name, args = parts[0], parts[1:]

    if name == "kill":
        _expect_args(name, args, 0, "no arguments")
        return KillCommand()

    if name == "close":
        _expect_args(name, args, 1, "a notification ID")
        return CloseCommand(notification_id=parse_notification_id(args[0]))

    if name == "action":
        _expect_args(name, args, 2, "a notification ID and an action key")
        return ActionCommand(notification_id=parse_notification_id(args[0]), action_key=args[1])

    raise MalformedCommandError(f"unknown command: {name}")


def format_command(cmd: ControlCommand) -> str:
    """Serialize a command back to its wire line (without newline)."""
    if isinstance(cmd, KillCommand):
        return "kill"
    if isinstance(cmd, CloseCommand):
        return f"close {cmd.notification_id}"
    return f"action {cmd.notification_id} {cmd.action_key}"


def iter_lines(buf: bytearray) -> Iterator[str]:
    """
    Pop complete, non-blank lines from a receive buffer.

    Consumed bytes are removed from `buf`; a trailing partial line is left in
    place for the next read. Invalid UTF-8 is replaced rather than raised, so
    such a line fails later as an unknown or malformed command.
    """
    while True:
        idx = buf.find(b"\n")
        if idx < 0:
            return
        raw = bytes(buf[:idx])
        del buf[: idx + 1]
        s = raw.decode("utf-8", errors="replace").strip()
        if s:
            yield s
