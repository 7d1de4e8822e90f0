"""
Error taxonomy for the notification daemon.

- `NotFoundError`: an operation referenced an id absent from the store.
- `MalformedCommandError`: control-channel input failed to parse.
- `CollaboratorError`: rendering or signal emission failed.
- `TransportSetupError`: an inbound surface could not bind; fatal at startup.
- `DaemonNotRunningError`: a client could not reach the control socket.
- `SchedulerInvariantError`: timer bookkeeping disagreed with the store;
  fatal when the daemon runs in debug mode.
"""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for all daemon errors."""


class NotFoundError(NotificationError):
    def __init__(self, notification_id: int):
        super().__init__(f"notification with ID {notification_id} not found")
        self.notification_id = notification_id


class MalformedCommandError(NotificationError):
    pass


class CollaboratorError(NotificationError):
    pass


class TransportSetupError(NotificationError):
    pass


class DaemonNotRunningError(NotificationError):
    pass


class SchedulerInvariantError(NotificationError):
    pass
