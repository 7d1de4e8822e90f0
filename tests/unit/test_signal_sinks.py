"""
Unit tests for the signal sinks in eww_notify.signals.

These tests validate:
- FanoutSignalEmitter delivers to every sink even when one fails
- SignalWorkerThread delivers queued events in order off the caller's thread
- SignalWorkerThread drops events (never blocks) when its queue is full
- LoggingSignalEmitter writes one log line per signal
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import List

from loguru import logger

from eww_notify.domain.events import SignalEvent
from eww_notify.domain.models import CloseReason
from eww_notify.signals.base import FanoutSignalEmitter, LoggingSignalEmitter
from eww_notify.signals.signal_thread import SignalThreadConfig, SignalWorkerThread


@dataclass
class RecordingSink:
    fail: bool = False
    events: List[SignalEvent] = field(default_factory=list)
    threads: List[str] = field(default_factory=list)

    def emit(self, event: SignalEvent) -> None:
        self.events.append(event)
        self.threads.append(threading.current_thread().name)
        if self.fail:
            raise RuntimeError("sink down")


def _wait_until(pred, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if pred():
            return True
        time.sleep(0.01)
    return pred()


def test_fanout_continues_after_failing_sink() -> None:
    bad = RecordingSink(fail=True)
    good = RecordingSink()
    fanout = FanoutSignalEmitter([bad, good])

    ev = SignalEvent.closed(1, CloseReason.EXPIRED)
    fanout.emit(ev)

    assert bad.events == [ev]
    assert good.events == [ev]


def test_worker_delivers_in_order_on_its_own_thread() -> None:
    sink = RecordingSink()
    worker = SignalWorkerThread(sink, SignalThreadConfig(poll_timeout_s=0.05))
    worker.start()
    try:
        events = [SignalEvent.closed(i, CloseReason.DISMISSED) for i in range(1, 6)]
        for ev in events:
            worker.emit(ev)
        assert _wait_until(lambda: len(sink.events) == 5)
    finally:
        worker.stop()

    assert [e.notification_id for e in sink.events] == [1, 2, 3, 4, 5]
    assert set(sink.threads) == {"signal-worker"}


def test_worker_survives_sink_failures() -> None:
    sink = RecordingSink(fail=True)
    worker = SignalWorkerThread(sink, SignalThreadConfig(poll_timeout_s=0.05))
    worker.start()
    try:
        worker.emit(SignalEvent.closed(1, CloseReason.EXPIRED))
        worker.emit(SignalEvent.action(1, "default"))
        assert _wait_until(lambda: len(sink.events) == 2)
    finally:
        worker.stop()


def test_worker_drops_when_queue_full() -> None:
    """
    A full queue drops the newest event instead of blocking the caller.
    """
    sink = RecordingSink()
    worker = SignalWorkerThread(sink, SignalThreadConfig(max_queue=2))  # not started

    for i in range(5):
        worker.emit(SignalEvent.closed(i, CloseReason.OTHER))

    worker.start()
    try:
        assert _wait_until(lambda: len(sink.events) == 2)
        time.sleep(0.1)
    finally:
        worker.stop()

    assert [e.notification_id for e in sink.events] == [0, 1]


def test_logging_sink_writes_one_line_per_signal() -> None:
    messages: List[str] = []
    sink_id = logger.add(
        lambda m: messages.append(str(m)),
        level="INFO",
        format="{message}",
        filter=lambda r: "id=4" in r["message"],
    )
    try:
        emitter = LoggingSignalEmitter()
        emitter.emit(SignalEvent.closed(4, CloseReason.CLOSED))
        emitter.emit(SignalEvent.action(4, "open"))
    finally:
        logger.remove(sink_id)

    assert messages[0].strip() == "NotificationClosed id=4 reason=CLOSED (3)"
    assert messages[1].strip() == "ActionInvoked id=4 action='open'"
