"""
Outbound signal events.

A `SignalEvent` represents *what happened* to a notification (it was closed,
or one of its actions was invoked), while `Notification` (in models.py)
represents *what is currently shown*.

Events are typically used for:
- protocol signals (``NotificationClosed``, ``ActionInvoked``)
- webhook delivery
- logging
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from eww_notify.domain.models import CloseReason


class SignalKind(str, Enum):
    """
    Kind of outbound signal.

    Members
    -------
    NOTIFICATION_CLOSED : str
        A notification left the store.
    ACTION_INVOKED : str
        The user invoked one of a notification's actions.
    """

    NOTIFICATION_CLOSED = "NotificationClosed"
    ACTION_INVOKED = "ActionInvoked"


@dataclass(frozen=True)
class SignalEvent:
    """
    Signal emitted by the engine.

    Parameters
    ----------
    kind
        Signal kind.
    notification_id
        Identifier of the affected notification.
    reason
        Close reason (closed signals only).
    action_key
        Invoked action key (action signals only).
    timestamp
        When the signal was produced.
    """

    kind: SignalKind
    notification_id: int
    reason: Optional[CloseReason] = None
    action_key: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def closed(cls, notification_id: int, reason: CloseReason) -> "SignalEvent":
        return cls(kind=SignalKind.NOTIFICATION_CLOSED, notification_id=notification_id, reason=reason)

    @classmethod
    def action(cls, notification_id: int, action_key: str) -> "SignalEvent":
        return cls(kind=SignalKind.ACTION_INVOKED, notification_id=notification_id, action_key=action_key)
