"""
Domain models and enums.

This module defines the core domain-level types used across the daemon:
- urgency classes, close reasons, lifetimes and display orientation
- the `Notification` record held by the store

Records are frozen dataclasses so they can be shared safely across the
engine, timer threads and the renderer. A replace always builds a new record.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from eww_notify.constants import HINT_URGENCY
from eww_notify.domain.hints import ByteValue, Hints, NumberValue, StringValue


class Urgency(str, Enum):
    """
    Urgency class derived from the ``urgency`` hint.

    Members
    -------
    LOW : str
    NORMAL : str
        Default when the hint is absent or unrecognized.
    CRITICAL : str
    """

    LOW = "low"
    NORMAL = "normal"
    CRITICAL = "critical"

    @classmethod
    def from_hints(cls, hints: Hints) -> "Urgency":
        """
        Derive the urgency class from a hints mapping.

        The hint may be a byte or number (0=low, 1=normal, 2=critical) or one
        of the class names as a string. Anything else maps to NORMAL.
        """
        v = hints.get(HINT_URGENCY)
        if isinstance(v, (ByteValue, NumberValue)):
            return _URGENCY_BY_LEVEL.get(v.value, cls.NORMAL)
        if isinstance(v, StringValue):
            try:
                return cls(v.value.strip().lower())
            except ValueError:
                return cls.NORMAL
        return cls.NORMAL


_URGENCY_BY_LEVEL = {0: Urgency.LOW, 1: Urgency.NORMAL, 2: Urgency.CRITICAL}


class CloseReason(Enum):
    """
    Why a notification left the store.

    The ``NotificationClosed`` wire code is the ordinal plus one.

    Members
    -------
    EXPIRED
        Removed by its timer or by the periodic sweep.
    DISMISSED
        Dismissed by the user (control channel ``close``).
    CLOSED
        Closed by a ``CloseNotification`` call.
    OTHER
        Any other reason (e.g. capacity eviction).
    """

    EXPIRED = 0
    DISMISSED = 1
    CLOSED = 2
    OTHER = 3

    @property
    def wire_value(self) -> int:
        return self.value + 1


class Lifetime(str, Enum):
    PERSISTENT = "persistent"
    TIMEOUT = "timeout"


class Orientation(str, Enum):
    """Stacking direction of the rendered notification list."""

    HORIZONTAL = "h"
    VERTICAL = "v"

    @classmethod
    def parse(cls, raw: object) -> "Orientation":
        """Parse ``h``/``v``; anything else falls back to VERTICAL."""
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.VERTICAL


@dataclass(frozen=True)
class Notification:
    """
    One notification as accepted from a producer.

    Parameters
    ----------
    id
        Unsigned 32-bit identifier, unique among stored notifications.
    timeout_s
        Resolved expiry in seconds; 0 means persistent.
    created_at
        Acceptance timestamp, used for expiry and oldest-first eviction.
    app_name, app_icon, summary, body
        Free-form text supplied by the producer.
    hints
        Typed hint values keyed by hint name.
    actions
        Flat ``key, label, key, label, ...`` sequence.
    render_hint
        Optional widget name overriding the default template.
    """

    id: int
    timeout_s: int
    created_at: datetime
    app_name: str = ""
    app_icon: str = ""
    summary: str = ""
    body: str = ""
    hints: Hints = field(default_factory=dict)
    actions: Tuple[str, ...] = ()
    render_hint: Optional[str] = None

    @property
    def lifetime(self) -> Lifetime:
        return Lifetime.PERSISTENT if self.timeout_s == 0 else Lifetime.TIMEOUT

    @property
    def expires_at(self) -> Optional[datetime]:
        """Absolute expiry instant, or None for persistent notifications."""
        if self.timeout_s == 0:
            return None
        return self.created_at + timedelta(seconds=self.timeout_s)

    def is_expired(self, now: datetime) -> bool:
        exp = self.expires_at
        return exp is not None and exp <= now

    def action_pairs(self) -> List[Tuple[str, str]]:
        """Return ``(key, label)`` pairs; a trailing unpaired entry is dropped."""
        a = self.actions
        return [(a[i], a[i + 1]) for i in range(0, len(a) - 1, 2)]

    def copy(self) -> "Notification":
        """
        Return an independent copy.

        Hint values are immutable, so copying the mapping is enough to keep
        the copy from observing later changes.
        """
        return replace(self, hints=dict(self.hints))
