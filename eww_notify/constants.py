"""
Static identifiers shared by the daemon, the CLI and the protocol surface.

Attributes
----------
APP_NAME, APP_VENDOR, APP_VERSION, SPEC_VERSION
    Values reported by ``GetServerInformation``.
CAPABILITIES
    Static capability list reported by ``GetCapabilities``.
IPC_SOCKET_PATH
    Default filesystem path of the control socket.
EWW_VARIABLE
    eww variable receiving the rendered widget string.
HINT_URGENCY, HINT_NOTIFY_TYPE
    Hint keys inspected by the engine and the renderer.
"""

from __future__ import annotations

from typing import Tuple

APP_NAME: str = "eww-notification-daemon"
APP_VENDOR: str = "eww"
APP_VERSION: str = "1.2.0"
SPEC_VERSION: str = "1.2"

CAPABILITIES: Tuple[str, ...] = (
    "body",
    "hints",
    "persistence",
    "icon-static",
    "actions-icons",
    "actions",
)

IPC_SOCKET_PATH: str = "/tmp/eww-socket"
EWW_BINARY: str = "eww"
EWW_VARIABLE: str = "end-notifications"

HINT_URGENCY: str = "urgency"
HINT_NOTIFY_TYPE: str = "type"
BATTERY_NOTIFY_TYPE: str = "battery"

MAX_NOTIFICATION_ID: int = 0xFFFFFFFF
