"""
``org.freedesktop.Notifications`` method contract.

`NotificationsService` is the object a bus binding exports: each method maps
one protocol call onto the engine. Converting bus variants to plain Python
values is the binding's job; this adapter turns those values into typed hints.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from eww_notify.constants import APP_NAME, APP_VENDOR, APP_VERSION, CAPABILITIES, SPEC_VERSION
from eww_notify.core.engine import NotificationEngine
from eww_notify.domain.hints import hints_from_wire
from eww_notify.domain.models import CloseReason


class NotificationsService:
    """
    Protocol-facing adapter over a `NotificationEngine`.

    Methods
    -------
    notify(...)
        ``Notify`` -> `NotificationEngine.create`.
    close_notification(id)
        ``CloseNotification`` -> `NotificationEngine.close` with reason CLOSED.
    get_capabilities()
        Static capability list.
    get_server_information()
        Static ``(name, vendor, version, spec_version)``.
    """

    def __init__(self, engine: NotificationEngine):
        self._engine = engine

    def notify(
        self,
        app_name: str,
        replaces_id: int,
        app_icon: str,
        summary: str,
        body: str,
        actions: Sequence[str],
        hints: Optional[Mapping[str, Any]],
        expire_timeout: int,
    ) -> int:
        logger.debug("Notify called - app={!r} summary={!r} replaces={}", app_name, summary, replaces_id)
        return self._engine.create(
            app_name=app_name,
            replace_id=replaces_id,
            app_icon=app_icon,
            summary=summary,
            body=body,
            actions=list(actions),
            hints=hints_from_wire(hints),
            requested_timeout=expire_timeout,
        )

    def close_notification(self, notification_id: int) -> None:
        """
        Raises
        ------
        NotFoundError
            If the id is not stored; the binding replies with an error.
        """
        self._engine.close(notification_id, CloseReason.CLOSED)

    def get_capabilities(self) -> List[str]:
        return list(CAPABILITIES)

    def get_server_information(self) -> Tuple[str, str, str, str]:
        return APP_NAME, APP_VENDOR, APP_VERSION, SPEC_VERSION
