from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from eww_notify.domain.events import SignalEvent
from eww_notify.signals.base import SignalEmitter


@dataclass(frozen=True)
class SignalThreadConfig:
    max_queue: int = 2000
    poll_timeout_s: float = 0.5


class SignalWorkerThread:
    """
    Queue-backed signal sink that delivers events on a background thread.

    `emit` never blocks: when the queue is full the newest event is dropped.
    Each event gets exactly one delivery attempt; failures are logged and not
    retried.
    """

    def __init__(self, sink: SignalEmitter, cfg: Optional[SignalThreadConfig] = None):
        self._sink = sink
        self._cfg = cfg or SignalThreadConfig()
        self._q: "queue.Queue[Optional[SignalEvent]]" = queue.Queue(maxsize=self._cfg.max_queue)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="signal-worker", daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        try:
            self._q.put_nowait(None)
        except queue.Full:
            pass
        if self._thread.is_alive():
            self._thread.join(timeout=2.0)

    def emit(self, event: SignalEvent) -> None:
        try:
            self._q.put_nowait(event)
        except queue.Full:
            logger.warning("Signal queue full; dropping {} for {}", event.kind.value, event.notification_id)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                event = self._q.get(timeout=self._cfg.poll_timeout_s)
            except queue.Empty:
                continue

            if event is None:
                break

            try:
                self._sink.emit(event)
            except Exception as e:
                logger.error("Signal delivery failed for {} {}: {!r}", event.kind.value, event.notification_id, e)
