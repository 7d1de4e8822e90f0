"""
Per-notification expiry timers.

The scheduler keeps at most one pending `threading.Timer` per notification id.
A timer's fire path and every other removal path (close, replace, eviction,
sweep) run under the same scheduler lock. The store removal therefore decides
which party wins a race, and only the winner emits a closure event.

Lock order is always: scheduler lock -> store lock.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional

from loguru import logger

from eww_notify.core.errors import SchedulerInvariantError
from eww_notify.core.state.notification_store import NotificationStore

ExpiredCallback = Callable[[List[int]], None]
ViolationHandler = Callable[[SchedulerInvariantError], None]


class TimeoutScheduler:
    """
    Owner of the ``id -> Timer`` map.

    Responsibilities
    ----------------
    - `arm` replaces any pending timer for an id with a new one-shot timer.
    - `cancel` / `cancel_all` discard pending timers (idempotent).
    - `sweep` is the backstop pass: expired records are removed from the
      store and their timers dropped atomically.
    - On fire, a timer that is still registered drops its handle, removes the
      record and hands the id to `on_expired` (outside the lock).

    Parameters
    ----------
    store
        Store the timers remove records from.
    on_expired
        Callback receiving ids removed by a timer; it emits the closure signal
        and refreshes the display.
    strict
        If True, invariant violations are reported to the registered
        violation handlers and raised as `SchedulerInvariantError`, instead of
        only being logged.
    """

    def __init__(self, store: NotificationStore, on_expired: ExpiredCallback, strict: bool = False):
        self._store = store
        self._on_expired = on_expired
        self._strict = strict
        self._timers: Dict[int, threading.Timer] = {}
        self._violation_handlers: List[ViolationHandler] = []
        self._lock = threading.RLock()
        self._closed = False

    def add_violation_handler(self, handler: ViolationHandler) -> None:
        """
        Register a callback invoked with the error of each strict-mode
        invariant violation, before it is raised on the violating thread.
        """
        self._violation_handlers.append(handler)

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """
        Hold the scheduler lock so that a multi-step mutation (cancel, upsert,
        arm) cannot interleave with a fire path or a sweep.
        """
        with self._lock:
            yield

    def arm(self, notification_id: int, duration_s: float) -> None:
        """
        Start a one-shot expiry timer, cancelling any existing one for the id.

        Parameters
        ----------
        notification_id
            Id of the notification to expire.
        duration_s
            Delay in seconds before the notification is removed.
        """
        with self._lock:
            if self._closed:
                logger.debug("Scheduler closed; not arming timer for {}", notification_id)
                return
            self._cancel_locked(notification_id)
            timer = threading.Timer(duration_s, self._fire, args=(notification_id,))
            timer.name = f"timeout-{notification_id}"
            timer.daemon = True
            self._timers[notification_id] = timer
            timer.start()
        logger.debug("Armed timeout for notification {}: {}s", notification_id, duration_s)

    def cancel(self, notification_id: int) -> bool:
        """
        Cancel the pending timer for an id.

        Returns
        -------
        bool
            True if a pending timer existed.
        """
        with self._lock:
            return self._cancel_locked(notification_id)

    def cancel_all(self) -> int:
        """
        Cancel every pending timer and refuse further arming.

        Returns
        -------
        int
            Number of timers cancelled.
        """
        with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()
        for t in timers:
            t.cancel()
        return len(timers)

    def sweep(self, now: Optional[datetime] = None) -> List[int]:
        """
        Remove expired records and drop their timers in one critical section.

        Returns
        -------
        list of int
            Ids removed by this pass. The caller emits their closure events.
        """
        with self._lock:
            expired = self._store.sweep_expired(now)
            for notification_id in expired:
                self._cancel_locked(notification_id)
        return expired

    def has_pending(self, notification_id: int) -> bool:
        with self._lock:
            return notification_id in self._timers

    def pending_ids(self) -> List[int]:
        with self._lock:
            return list(self._timers)

    def _cancel_locked(self, notification_id: int) -> bool:
        timer = self._timers.pop(notification_id, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def _fire(self, notification_id: int) -> None:
        me = threading.current_thread()
        with self._lock:
            if self._timers.get(notification_id) is not me:
                # Cancelled or superseded after the timer elapsed.
                return
            del self._timers[notification_id]
            removed = self._store.remove(notification_id)

        if not removed:
            self._invariant(f"timer for notification {notification_id} fired but the record was gone")
            return

        logger.debug("Notification {} expired", notification_id)
        try:
            self._on_expired([notification_id])
        except Exception:
            logger.exception("Expiry handling failed for notification {}", notification_id)

    def _invariant(self, message: str) -> None:
        logger.critical("Scheduler invariant violated: {}", message)
        if not self._strict:
            return
        err = SchedulerInvariantError(message)
        for handler in list(self._violation_handlers):
            try:
                handler(err)
            except Exception:
                logger.exception("Invariant violation handler failed")
        raise err
