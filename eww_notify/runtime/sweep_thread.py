from __future__ import annotations

import threading

from loguru import logger

from eww_notify.core.engine import NotificationEngine


class SweepThread:
    """
    Periodic backstop that removes notifications past their expiry.

    Per-id timers normally remove notifications on time; this loop catches
    anything a timer missed. It calls :meth:`NotificationEngine.sweep_expired`
    every `interval_s` seconds until stopped.

    Concurrency Model
    -----------------
    - Runs as a daemon thread.
    - Waits on the stop event between passes, so stop is immediate.
    - Any exception during a pass is logged and the loop continues.

    Parameters
    ----------
    engine
        Engine whose store is swept.
    interval_s
        Seconds between sweep passes.
    stop_event
        Stop signal for the thread.
    """

    def __init__(self, engine: NotificationEngine, interval_s: float, stop_event: threading.Event):
        self._engine = engine
        self._interval_s = interval_s
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name="expiry-sweep", daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = 2.0) -> None:
        if self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        while not self._stop.wait(self._interval_s):
            try:
                self._engine.sweep_expired()
            except Exception:
                logger.exception("Expiry sweep failed")
