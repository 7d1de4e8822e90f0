from __future__ import annotations

from typing import List, Protocol, Sequence

from loguru import logger

from eww_notify.domain.events import SignalEvent, SignalKind


class SignalEmitter(Protocol):
    """
    Protocol interface for outbound signal delivery.

    Any sink can be used if it provides an ``emit(event)`` method. A bus
    binding maps ``NotificationClosed`` / ``ActionInvoked`` events onto its
    own signals; tests use recording fakes.

    Methods
    -------
    emit(event)
        Deliver a signal event. Failures are raised to the caller.
    """

    def emit(self, event: SignalEvent) -> None:
        ...


class LoggingSignalEmitter:
    """
    Signal sink that only writes each signal to the daemon log.
    """

    def emit(self, event: SignalEvent) -> None:
        if event.kind is SignalKind.NOTIFICATION_CLOSED and event.reason is not None:
            logger.info(
                "NotificationClosed id={} reason={} ({})",
                event.notification_id,
                event.reason.name,
                event.reason.wire_value,
            )
        else:
            logger.info("ActionInvoked id={} action={!r}", event.notification_id, event.action_key)


class FanoutSignalEmitter:
    """
    Deliver each event to several sinks.

    A failing sink is logged and does not prevent delivery to the others.
    """

    def __init__(self, emitters: Sequence[SignalEmitter]):
        self._emitters: List[SignalEmitter] = list(emitters)

    def emit(self, event: SignalEvent) -> None:
        for emitter in self._emitters:
            try:
                emitter.emit(event)
            except Exception:
                logger.exception("Signal sink {} failed for {}", type(emitter).__name__, event.kind.value)
