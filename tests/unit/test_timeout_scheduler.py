"""
Unit tests for eww_notify.core.scheduler.timeout_scheduler.TimeoutScheduler.

These tests validate:
- an armed timer removes its record and reports it exactly once
- cancel / re-arm / cancel_all suppress stale timers
- sweep removes expired records and drops their timers atomically
- invariant violations are logged (and reported to handlers, then raised, in
  strict mode)

Timers use short real delays; waits are bounded to keep CI from hanging.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta
from typing import Callable, List

import pytest
from loguru import logger

from eww_notify.core.errors import SchedulerInvariantError
from eww_notify.core.scheduler.timeout_scheduler import TimeoutScheduler
from eww_notify.core.state.notification_store import NotificationStore
from eww_notify.domain.models import Notification

T0 = datetime(2026, 1, 1, 10, 0, 0)


def _wait_until(pred: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if pred():
            return True
        time.sleep(0.01)
    return pred()


class _Expired:
    """Thread-safe recorder for the scheduler's expiry callback."""

    def __init__(self) -> None:
        self.ids: List[int] = []
        self._lock = threading.Lock()

    def __call__(self, ids: List[int]) -> None:
        with self._lock:
            self.ids.extend(ids)


def _setup(*ids: int, timeout_s: int = 10):
    store = NotificationStore()
    for i in ids:
        store.upsert(Notification(id=i, timeout_s=timeout_s, created_at=T0))
    expired = _Expired()
    return store, TimeoutScheduler(store, expired), expired


def test_armed_timer_removes_record_and_reports_once() -> None:
    store, sched, expired = _setup(1)

    sched.arm(1, 0.05)

    assert _wait_until(lambda: expired.ids == [1])
    assert store.get(1) is None
    assert not sched.has_pending(1)

    time.sleep(0.1)
    assert expired.ids == [1]


def test_cancel_before_fire_suppresses_everything() -> None:
    store, sched, expired = _setup(1)

    sched.arm(1, 0.1)
    assert sched.cancel(1) is True
    assert sched.cancel(1) is False  # idempotent

    time.sleep(0.25)
    assert expired.ids == []
    assert store.get(1) is not None


def test_rearm_replaces_previous_timer() -> None:
    """
    Only the most recently armed timer for an id may fire.
    """
    store, sched, expired = _setup(1)

    sched.arm(1, 0.05)
    sched.arm(1, 0.5)

    time.sleep(0.2)
    assert expired.ids == []
    assert store.get(1) is not None
    assert sched.pending_ids() == [1]

    assert _wait_until(lambda: expired.ids == [1])


def test_cancel_all_cancels_and_blocks_further_arming() -> None:
    store, sched, expired = _setup(1, 2)

    sched.arm(1, 0.1)
    sched.arm(2, 0.1)
    assert sched.cancel_all() == 2

    sched.arm(1, 0.01)
    time.sleep(0.25)

    assert expired.ids == []
    assert sched.pending_ids() == []
    assert store.ids() == [1, 2]


def test_sweep_removes_expired_and_drops_their_timers() -> None:
    store, sched, expired = _setup(1, 2, timeout_s=5)
    store.upsert(Notification(id=3, timeout_s=0, created_at=T0))
    sched.arm(1, 60)
    sched.arm(2, 60)

    removed = sched.sweep(now=T0 + timedelta(seconds=10))

    assert removed == [1, 2]
    assert sched.pending_ids() == []
    assert store.ids() == [3]
    # Sweep results are reported by the caller, not the callback.
    assert expired.ids == []


def test_exclusive_blocks_fire_path() -> None:
    """
    While exclusive() is held, an elapsed timer cannot remove its record.
    """
    store, sched, expired = _setup(1)

    with sched.exclusive():
        sched.arm(1, 0.01)
        time.sleep(0.1)
        assert store.get(1) is not None
        sched.cancel(1)

    time.sleep(0.05)
    assert expired.ids == []
    assert store.get(1) is not None


def test_fire_for_missing_record_is_logged_as_invariant_violation() -> None:
    store, sched, expired = _setup(1)
    messages: List[str] = []
    sink_id = logger.add(lambda m: messages.append(str(m)), level="CRITICAL")
    try:
        sched.arm(1, 0.05)
        store.remove(1)  # bypasses the scheduler on purpose
        assert _wait_until(lambda: bool(messages))
    finally:
        logger.remove(sink_id)

    assert expired.ids == []
    assert "invariant" in messages[0]


def test_strict_mode_raises_on_invariant_violation() -> None:
    store = NotificationStore()
    sched = TimeoutScheduler(store, lambda ids: None, strict=True)
    seen: List[SchedulerInvariantError] = []
    sched.add_violation_handler(seen.append)

    with pytest.raises(SchedulerInvariantError) as exc:
        sched._invariant("boom")

    assert seen == [exc.value]


def test_failing_violation_handler_does_not_mask_error() -> None:
    store = NotificationStore()
    sched = TimeoutScheduler(store, lambda ids: None, strict=True)
    seen: List[SchedulerInvariantError] = []

    def broken(err: SchedulerInvariantError) -> None:
        raise RuntimeError("handler down")

    sched.add_violation_handler(broken)
    sched.add_violation_handler(seen.append)

    with pytest.raises(SchedulerInvariantError):
        sched._invariant("boom")
    assert len(seen) == 1


def test_lenient_mode_does_not_call_violation_handlers() -> None:
    sched = TimeoutScheduler(NotificationStore(), lambda ids: None)
    seen: List[SchedulerInvariantError] = []
    sched.add_violation_handler(seen.append)

    sched._invariant("boom")

    assert seen == []


def test_callback_failure_is_contained() -> None:
    store = NotificationStore()
    store.upsert(Notification(id=1, timeout_s=1, created_at=T0))
    calls: List[int] = []

    def failing(ids: List[int]) -> None:
        calls.extend(ids)
        raise RuntimeError("display down")

    sched = TimeoutScheduler(store, failing)
    sched.arm(1, 0.01)

    assert _wait_until(lambda: calls == [1])
    assert store.get(1) is None
