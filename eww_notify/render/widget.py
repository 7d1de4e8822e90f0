"""
Widget-string rendering for eww.

Each notification is rendered as a widget call whose single argument is the
notification serialized to JSON and escaped for a yuck string literal. The
calls are wrapped in a box stacked in the configured orientation::

    (box :space-evenly false :orientation "vertical"
      (box :class "notification-container" (base-notification :notification "{...}"))
      ...)
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from eww_notify.constants import BATTERY_NOTIFY_TYPE, HINT_NOTIFY_TYPE
from eww_notify.domain.hints import get_string, hint_to_json
from eww_notify.domain.models import Notification, Orientation

DEFAULT_WIDGET = "base-notification"
BATTERY_WIDGET = "battery-notification"


def notification_to_json(n: Notification) -> Dict[str, Any]:
    """
    Convert a notification into the JSON object handed to the widget.

    Actions become a list of ``{"key", "name"}`` objects; a trailing unpaired
    action entry is dropped.
    """
    return {
        "id": n.id,
        "summary": n.summary,
        "body": n.body,
        "app_name": n.app_name,
        "app_icon": n.app_icon,
        "hints": {k: hint_to_json(v) for k, v in n.hints.items()},
        "actions": [{"key": k, "name": name} for k, name in n.action_pairs()],
    }


def escape_for_eww(text: str) -> str:
    """Escape backslashes and double quotes for a yuck string literal."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def select_widget(n: Notification) -> str:
    """
    Pick the widget for a notification.

    Battery notifications always use the battery widget; otherwise the
    record's render hint wins over the default widget.
    """
    if get_string(n.hints, HINT_NOTIFY_TYPE) == BATTERY_NOTIFY_TYPE:
        return BATTERY_WIDGET
    return n.render_hint or DEFAULT_WIDGET


class WidgetRenderer:
    """Render a snapshot into a single eww widget expression."""

    def render_notification(self, n: Notification) -> str:
        payload = escape_for_eww(json.dumps(notification_to_json(n), ensure_ascii=False))
        return f'({select_widget(n)} :notification "{payload}")'

    def render(self, snapshot: Sequence[Notification], orientation: Orientation) -> str:
        widgets: List[str] = [
            f'(box :class "notification-container" {self.render_notification(n)})' for n in snapshot
        ]
        direction = "horizontal" if orientation is Orientation.HORIZONTAL else "vertical"
        return f'(box :space-evenly false :orientation "{direction}" {"".join(widgets)})'
