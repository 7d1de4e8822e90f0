"""
Stress tests for NotificationEngine / TimeoutScheduler concurrency.

These tests race the removal paths against each other from many threads and
validate safety properties such as:
- concurrent creates never hand out the same id
- timer fire, sweep and explicit close together emit exactly one closure
  signal per notification
- a replace racing its own timer never loses the replacement record
- no thread deadlocks (all joins finish)

Notes
-----
Threading tests are probabilistic: they increase confidence but do not prove
the absence of races. Run multiple times for higher confidence.
"""

from __future__ import annotations

import random
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Sequence

import pytest

from eww_notify.core.config.yaml_config import UrgencyTimeouts
from eww_notify.core.engine import NotificationEngine
from eww_notify.core.errors import NotFoundError
from eww_notify.core.state.notification_store import NotificationStore
from eww_notify.domain.events import SignalEvent, SignalKind
from eww_notify.domain.hints import ByteValue
from eww_notify.domain.models import CloseReason, Notification


@dataclass
class CountingDisplay:
    refreshes: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def refresh(self, snapshot: Sequence[Notification]) -> None:
        with self._lock:
            self.refreshes += 1


@dataclass
class RecordingSignals:
    events: List[SignalEvent] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def emit(self, event: SignalEvent) -> None:
        with self._lock:
            self.events.append(event)

    def closed_counts(self) -> Counter:
        with self._lock:
            return Counter(e.notification_id for e in self.events if e.kind is SignalKind.NOTIFICATION_CLOSED)


def _engine(timeouts: UrgencyTimeouts) -> tuple:
    signals = RecordingSignals()
    engine = NotificationEngine(NotificationStore(), CountingDisplay(), signals, timeouts=timeouts)
    return engine, signals


def _join_all(threads: List[threading.Thread], timeout: float = 15.0) -> None:
    for t in threads:
        t.join(timeout=timeout)
    assert all(not t.is_alive() for t in threads), "A thread did not finish (possible deadlock)"


@pytest.mark.stress
def test_concurrent_creates_allocate_unique_ids() -> None:
    engine, _ = _engine(UrgencyTimeouts(low=0, normal=0, critical=0))
    start = threading.Barrier(8)
    results: List[List[int]] = [[] for _ in range(8)]
    errors: List[BaseException] = []

    def producer(tid: int) -> None:
        try:
            start.wait()
            for k in range(50):
                results[tid].append(engine.create(f"app{tid}", 0, "", f"s{k}", "", [], {}))
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=producer, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    _join_all(threads)

    if errors:
        raise AssertionError(f"Concurrency test caught exceptions: {errors!r}")

    all_ids = [i for r in results for i in r]
    assert len(all_ids) == 400
    assert len(set(all_ids)) == 400
    assert sorted(all_ids) == list(range(1, 401))
    assert len(engine.store) == 400
    for r in results:
        assert r == sorted(r)


@pytest.mark.stress
def test_timer_sweep_and_close_emit_exactly_once() -> None:
    """
    Every notification leaves the store exactly once, whichever path wins.
    """
    engine, signals = _engine(UrgencyTimeouts(low=1, normal=1, critical=1))
    ids = [engine.create("app", 0, "", f"s{i}", "", [], {}) for i in range(200)]
    start = threading.Barrier(5)
    errors: List[BaseException] = []
    rng = random.Random(1234)
    close_order = list(ids)
    rng.shuffle(close_order)

    def closer(chunk: List[int]) -> None:
        try:
            start.wait()
            time.sleep(0.9 + rng.random() * 0.2)
            for nid in chunk:
                try:
                    engine.close(nid, CloseReason.DISMISSED)
                except NotFoundError:
                    pass
        except BaseException as e:
            errors.append(e)

    def sweeper() -> None:
        try:
            start.wait()
            deadline = time.monotonic() + 1.6
            while time.monotonic() < deadline:
                engine.sweep_expired(now=datetime.now() + timedelta(milliseconds=rng.randint(-50, 50)))
                time.sleep(0.001)
        except BaseException as e:
            errors.append(e)

    threads = [
        threading.Thread(target=closer, args=(close_order[0:70],)),
        threading.Thread(target=closer, args=(close_order[70:140],)),
        threading.Thread(target=closer, args=(close_order[140:200],)),
        threading.Thread(target=sweeper),
        threading.Thread(target=sweeper),
    ]
    for t in threads:
        t.start()
    _join_all(threads)

    if errors:
        raise AssertionError(f"Concurrency test caught exceptions: {errors!r}")

    # Let any timer still in flight finish its callback.
    time.sleep(0.3)

    counts = signals.closed_counts()
    assert set(counts) == set(ids)
    assert all(c == 1 for c in counts.values()), [nid for nid, c in counts.items() if c != 1]
    assert len(engine.store) == 0
    assert engine.scheduler.pending_ids() == []


@pytest.mark.stress
def test_replace_racing_its_timer_keeps_replacement() -> None:
    """
    A replace landing around the old timer's deadline either loses to the
    timer (record expired, then re-created) or cancels it; the replacement
    record is present afterwards in both cases.
    """
    engine, signals = _engine(UrgencyTimeouts(low=1, normal=1, critical=0))
    persistent = {"urgency": ByteValue(2)}
    ids = [engine.create("app", 0, "", "old", "", [], {}) for _ in range(100)]
    start = threading.Barrier(4)
    errors: List[BaseException] = []

    def replacer(chunk: List[int]) -> None:
        try:
            start.wait()
            time.sleep(0.95)
            for nid in chunk:
                engine.create("app", nid, "", "new", "", [], persistent)
        except BaseException as e:
            errors.append(e)

    chunks = [ids[i::4] for i in range(4)]
    threads = [threading.Thread(target=replacer, args=(c,)) for c in chunks]
    for t in threads:
        t.start()
    _join_all(threads)
    time.sleep(0.3)

    if errors:
        raise AssertionError(f"Concurrency test caught exceptions: {errors!r}")

    snap = {n.id: n for n in engine.snapshot()}
    assert set(snap) == set(ids)
    assert all(n.summary == "new" and n.timeout_s == 0 for n in snap.values())
    assert engine.scheduler.pending_ids() == []
    # Ids expired before their replacement landed were closed exactly once.
    assert all(c == 1 for c in signals.closed_counts().values())
