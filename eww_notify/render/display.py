from __future__ import annotations

from typing import Optional, Protocol, Sequence

from loguru import logger

from eww_notify.constants import EWW_VARIABLE
from eww_notify.domain.models import Notification, Orientation
from eww_notify.render.eww_client import EwwClient
from eww_notify.render.widget import WidgetRenderer


class Display(Protocol):
    """
    Render collaborator used by the engine.

    ``refresh`` receives an independent snapshot and pushes it to the
    external display. Failures are raised; the engine logs them.
    """

    def refresh(self, snapshot: Sequence[Notification]) -> None:
        ...


class EwwDisplay:
    """
    Publish snapshots to eww.

    Behavior
    --------
    - Non-empty snapshot: render, publish to the notifications variable and
      open the configured window (if any).
    - Empty snapshot: close the configured window, or clear the variable
      when no window is configured.

    Parameters
    ----------
    client
        eww command wrapper.
    orientation
        Stacking direction of the rendered list.
    window
        Optional eww window opened/closed with the notification list.
    variable
        eww variable receiving the widget string.
    renderer
        Widget-string builder.
    """

    def __init__(
        self,
        client: EwwClient,
        orientation: Orientation = Orientation.VERTICAL,
        window: Optional[str] = None,
        variable: str = EWW_VARIABLE,
        renderer: Optional[WidgetRenderer] = None,
    ):
        self._client = client
        self._orientation = orientation
        self._window = window
        self._variable = variable
        self._renderer = renderer or WidgetRenderer()

    def refresh(self, snapshot: Sequence[Notification]) -> None:
        if not snapshot:
            if self._window is not None:
                self._client.hide_window(self._window)
            else:
                self._client.publish(self._variable, "")
            return

        widget = self._renderer.render(snapshot, self._orientation)
        logger.debug("Built widget string: {}", widget)
        self._client.publish(self._variable, widget)
        if self._window is not None:
            self._client.show_window(self._window)
