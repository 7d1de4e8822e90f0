from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from eww_notify.constants import IPC_SOCKET_PATH
from eww_notify.core.engine import NotificationEngine
from eww_notify.core.errors import SchedulerInvariantError
from eww_notify.runtime.control_dispatcher import ControlDispatcher
from eww_notify.runtime.control_server import ControlServer, ControlServerConfig
from eww_notify.runtime.sweep_thread import SweepThread
from eww_notify.signals.signal_thread import SignalWorkerThread


@dataclass(frozen=True)
class DaemonRuntimeConfig:
    """
    Runtime configuration for thread orchestration.

    Parameters
    ----------
    control_socket
        Filesystem path of the control socket.
    sweep_interval_s
        Seconds between expiry sweep passes.
    """

    control_socket: str = IPC_SOCKET_PATH
    sweep_interval_s: float = 30.0


class DaemonRuntime:
    """
    Thread supervisor for the running daemon.

    This class owns:
    - a shared stop event
    - the shutdown-request event set by the ``kill`` control command or by a
      strict-mode scheduler invariant violation
    - thread lifecycles (start/stop/join)

    Thread Topology
    ---------------
    1) ControlServer (I/O)
       - owns the control socket
       - one thread per connection, feeding `ControlDispatcher`

    2) SweepThread (backstop)
       - periodically calls `NotificationEngine.sweep_expired`

    3) SignalWorkerThread (optional)
       - delivers signals to the webhook sink off the engine's threads

    Timer threads are owned by the engine's scheduler.
    """

    def __init__(
        self,
        cfg: DaemonRuntimeConfig,
        engine: NotificationEngine,
        signal_worker: Optional[SignalWorkerThread] = None,
    ):
        self._cfg = cfg
        self._engine = engine
        self._signal_worker = signal_worker
        self._stop = threading.Event()
        self._shutdown_requested = threading.Event()
        self._stopped = False
        self._stop_lock = threading.Lock()
        self._fatal_error: Optional[SchedulerInvariantError] = None
        engine.scheduler.add_violation_handler(self._on_invariant_violation)

        self.dispatcher = ControlDispatcher(engine=engine, on_kill=self.request_shutdown)
        self._control = ControlServer(ControlServerConfig(path=cfg.control_socket), self.dispatcher)
        self._sweeper = SweepThread(engine=engine, interval_s=cfg.sweep_interval_s, stop_event=self._stop)

    @property
    def engine(self) -> NotificationEngine:
        return self._engine

    @property
    def fatal_error(self) -> Optional[SchedulerInvariantError]:
        """First invariant violation that requested shutdown, if any."""
        return self._fatal_error

    def start(self) -> None:
        """
        Start all runtime threads.

        Raises
        ------
        TransportSetupError
            If the control socket cannot be bound.
        """
        if self._signal_worker is not None:
            self._signal_worker.start()
        self._control.start()
        self._sweeper.start()
        logger.info("Notification daemon started")

    def request_shutdown(self) -> None:
        """Ask the owner of the runtime to stop it; never blocks."""
        self._shutdown_requested.set()

    def _on_invariant_violation(self, err: SchedulerInvariantError) -> None:
        if self._fatal_error is None:
            self._fatal_error = err
        logger.critical("Stopping daemon after invariant violation: {}", err)
        self.request_shutdown()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Block until a shutdown is requested.

        Returns
        -------
        bool
            True if a shutdown was requested, False on timeout.
        """
        return self._shutdown_requested.wait(timeout)

    def stop(self) -> None:
        """
        Stop all runtime threads; safe to call more than once.

        Notes
        -----
        Pending timers are cancelled first, so no expiry fires while the
        inbound surfaces are being torn down.
        """
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        logger.info("Stopping notification daemon...")
        self._engine.shutdown()
        self._control.stop()
        self._sweeper.stop()

        self._control.join(timeout=2.0)
        self._sweeper.join(timeout=2.0)

        if self._signal_worker is not None:
            self._signal_worker.stop()
        self._shutdown_requested.set()
