"""
Notification lifecycle engine.

This module contains the state machine that turns inbound requests (from the
protocol surface or the control channel) into:
- store mutations
- expiry timers (armed, re-armed, cancelled)
- outbound signals (``NotificationClosed``, ``ActionInvoked``)
- display refreshes

The engine keeps no state of its own beyond its store and scheduler; the same
instance is injected into every inbound surface.
"""

from __future__ import annotations

import math
import threading
from datetime import datetime
from typing import List, Mapping, Optional, Sequence

from loguru import logger

from eww_notify.constants import BATTERY_NOTIFY_TYPE, HINT_NOTIFY_TYPE, MAX_NOTIFICATION_ID
from eww_notify.core.config.yaml_config import TimeoutPolicy, UrgencyTimeouts
from eww_notify.core.errors import NotFoundError
from eww_notify.core.scheduler.timeout_scheduler import TimeoutScheduler
from eww_notify.core.state.notification_store import NotificationStore
from eww_notify.domain.events import SignalEvent
from eww_notify.domain.hints import HintValue, get_string
from eww_notify.domain.models import CloseReason, Notification, Urgency
from eww_notify.render.display import Display
from eww_notify.signals.base import SignalEmitter


class NotificationEngine:
    """
    Protocol-facing notification state machine.

    Operations
    ----------
    - `create`: add or replace a notification and (re)arm its timer.
    - `close`: remove a notification and emit a closure signal.
    - `invoke_action`: emit an action signal for a stored notification.
    - `sweep_expired`: backstop removal of anything past its expiry.
    - `shutdown`: cancel every pending timer.

    Notes
    -----
    - Multi-step mutations run inside `TimeoutScheduler.exclusive` so a
      replace can never interleave with the old record's timer firing.
    - Signals and display refreshes always run outside the store and
      scheduler locks. Their failures are logged and never undo a mutation.
    - Display refreshes are serialized and always publish a snapshot taken
      after the triggering mutation.

    Parameters
    ----------
    store
        Shared notification store.
    display
        Render collaborator receiving snapshots.
    signals
        Outbound signal sink.
    timeouts
        Expiry per urgency class.
    battery_timeout_s
        Expiry forced onto ``type: battery`` notifications that would
        otherwise be persistent.
    timeout_policy
        Whether the caller's requested timeout overrides the urgency table.
    default_render_hint
        Widget name stored on every new notification.
    strict
        Raise on scheduler invariant violations (debug mode).
    """

    def __init__(
        self,
        store: NotificationStore,
        display: Display,
        signals: SignalEmitter,
        timeouts: Optional[UrgencyTimeouts] = None,
        battery_timeout_s: int = 10,
        timeout_policy: Optional[TimeoutPolicy] = None,
        default_render_hint: Optional[str] = None,
        strict: bool = False,
    ):
        self._store = store
        self._display = display
        self._signals = signals
        self._timeouts = timeouts or UrgencyTimeouts()
        self._battery_timeout_s = battery_timeout_s
        self._policy = timeout_policy or TimeoutPolicy()
        self._default_render_hint = default_render_hint
        self._scheduler = TimeoutScheduler(store, self._handle_expired, strict=strict)
        self._render_lock = threading.Lock()

    @property
    def store(self) -> NotificationStore:
        return self._store

    @property
    def scheduler(self) -> TimeoutScheduler:
        return self._scheduler

    # --- Requests ---
    def create(
        self,
        app_name: str,
        replace_id: int,
        app_icon: str,
        summary: str,
        body: str,
        actions: Sequence[str],
        hints: Mapping[str, HintValue],
        requested_timeout: int = -1,
    ) -> int:
        """
        Create a notification, or replace one when `replace_id` is non-zero.

        Parameters
        ----------
        app_name, app_icon, summary, body
            Producer-supplied text.
        replace_id
            0 to allocate a new id; otherwise the id to (re)use. The id is
            trusted without an existence check.
        actions
            Flat ``key, label, ...`` sequence.
        hints
            Typed hint values.
        requested_timeout
            Caller's expire timeout in milliseconds (-1 = server default).
            Only used when the timeout policy honors it.

        Returns
        -------
        int
            Id of the stored notification.
        """
        if not 0 <= replace_id <= MAX_NOTIFICATION_ID:
            raise ValueError(f"replace id out of range: {replace_id}")

        hint_map = dict(hints)
        timeout = self.resolve_timeout(hint_map, requested_timeout)

        with self._scheduler.exclusive():
            if replace_id:
                notification_id = replace_id
                if self._store.get(notification_id) is None:
                    logger.debug("Replace id {} is not stored; creating it", notification_id)
            else:
                notification_id = self._store.next_id()

            record = Notification(
                id=notification_id,
                timeout_s=timeout,
                created_at=self._store.clock(),
                app_name=app_name,
                app_icon=app_icon,
                summary=summary,
                body=body,
                hints=hint_map,
                actions=tuple(actions),
                render_hint=self._default_render_hint,
            )

            self._scheduler.cancel(notification_id)
            evicted = self._store.upsert(record)
            if evicted is not None:
                self._scheduler.cancel(evicted.id)
            if timeout > 0:
                self._scheduler.arm(notification_id, timeout)

        logger.debug(
            "Stored notification {} from {!r} (timeout={}s, replace={})",
            notification_id,
            app_name,
            timeout,
            bool(replace_id),
        )

        if evicted is not None:
            logger.info("Evicted notification {} (capacity reached)", evicted.id)
            self._emit(SignalEvent.closed(evicted.id, CloseReason.OTHER))

        self._refresh()
        return notification_id

    def close(self, notification_id: int, reason: CloseReason) -> None:
        """
        Close a stored notification.

        Raises
        ------
        NotFoundError
            If the id is not stored; nothing is mutated in that case.
        """
        with self._scheduler.exclusive():
            removed = self._store.remove(notification_id)
            if removed:
                self._scheduler.cancel(notification_id)

        if not removed:
            raise NotFoundError(notification_id)

        logger.debug("Closed notification {} ({})", notification_id, reason.name)
        self._emit(SignalEvent.closed(notification_id, reason))
        self._refresh()

    def invoke_action(self, notification_id: int, action_key: str) -> None:
        """
        Emit an action signal; the notification itself is left untouched.

        Raises
        ------
        NotFoundError
            If the id is not stored.
        """
        if self._store.get(notification_id) is None:
            raise NotFoundError(notification_id)
        self._emit(SignalEvent.action(notification_id, action_key))

    def sweep_expired(self, now: Optional[datetime] = None) -> List[int]:
        """
        Remove every notification past its expiry and emit their closures.

        Returns
        -------
        list of int
            Ids removed by this pass.
        """
        expired = self._scheduler.sweep(now)
        if expired:
            logger.debug("Sweep removed {}", expired)
            self._handle_expired(expired)
        return expired

    def shutdown(self) -> None:
        cancelled = self._scheduler.cancel_all()
        logger.info("Engine shut down ({} pending timers cancelled)", cancelled)

    def snapshot(self) -> List[Notification]:
        return self._store.snapshot()

    # --- Policy ---
    def resolve_timeout(self, hints: Mapping[str, HintValue], requested_timeout: int = -1) -> int:
        """
        Resolve the effective expiry in seconds (0 = persistent).

        Precedence
        ----------
        1) urgency table from config
        2) caller's requested timeout, only if the policy honors it
           (0 = persistent, >0 milliseconds rounded up to whole seconds)
        3) battery notifications that would be persistent get the battery timeout
        """
        timeout = self._timeouts.for_urgency(Urgency.from_hints(hints))

        if self._policy.honor_requested and requested_timeout >= 0:
            timeout = math.ceil(requested_timeout / 1000)

        if timeout == 0 and get_string(hints, HINT_NOTIFY_TYPE) == BATTERY_NOTIFY_TYPE:
            timeout = self._battery_timeout_s

        return timeout

    # --- Effects ---
    def _handle_expired(self, ids: List[int]) -> None:
        for notification_id in ids:
            self._emit(SignalEvent.closed(notification_id, CloseReason.EXPIRED))
        self._refresh()

    def _emit(self, event: SignalEvent) -> None:
        try:
            self._signals.emit(event)
        except Exception as e:
            logger.error("Failed to emit {} for {}: {!r}", event.kind.value, event.notification_id, e)

    def _refresh(self) -> None:
        with self._render_lock:
            snapshot = self._store.snapshot()
            try:
                self._display.refresh(snapshot)
            except Exception as e:
                logger.error("Failed to update display: {!r}", e)
