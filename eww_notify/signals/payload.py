from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from eww_notify.domain.events import SignalEvent


def _iso(ts: datetime) -> str:
    """
    Convert datetime to ISO-8601 string with second precision.
    """
    return ts.isoformat(timespec="seconds")


def build_signal_payload(ev: SignalEvent) -> Dict[str, Any]:
    """
    Build the webhook JSON body for a signal event.

    The payload includes:
    - "type": the signal name (``NotificationClosed`` / ``ActionInvoked``)
    - "event": the notification id plus the reason or action key

    Parameters
    ----------
    ev
        Signal event to serialize.

    Returns
    -------
    dict
        Webhook payload dictionary with keys "type" and "event".
    """
    event_payload: Dict[str, Any] = {
        "id": ev.notification_id,
        "timestamp": _iso(ev.timestamp),
    }
    if ev.reason is not None:
        event_payload["reason"] = ev.reason.name.lower()
        event_payload["reason_code"] = ev.reason.wire_value
    if ev.action_key is not None:
        event_payload["action_key"] = ev.action_key

    return {
        "type": ev.kind.value,
        "event": event_payload,
    }
