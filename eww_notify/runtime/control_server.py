from __future__ import annotations

import os
import socket
import threading
from dataclasses import dataclass
from typing import Optional, Set

from loguru import logger

from eww_notify.constants import IPC_SOCKET_PATH
from eww_notify.core.errors import TransportSetupError
from eww_notify.runtime.control_dispatcher import ControlDispatcher
from eww_notify.transport.control_protocol import iter_lines


@dataclass(frozen=True)
class ControlServerConfig:
    """
    Configuration for the control socket server.

    Parameters
    ----------
    path
        Filesystem path of the Unix stream socket. A stale file at this path
        is removed before binding.
    backlog
        Listen backlog.
    recv_size
        Bytes read per ``recv`` call.
    accept_poll_s
        Listener timeout; bounds how long ``accept`` blocks between stop checks.
    max_line_bytes
        Longest pending line kept in memory. A longer line is logged and
        discarded up to its newline.
    """

    path: str = IPC_SOCKET_PATH
    backlog: int = 16
    recv_size: int = 4096
    accept_poll_s: float = 0.5
    max_line_bytes: int = 64 * 1024


class ControlServer:
    """
    Unix-socket server feeding control commands into a `ControlDispatcher`.

    Thread Topology
    ---------------
    - one accept thread
    - one daemon thread per accepted connection; lines on a connection are
      dispatched in the order received, with no ordering across connections

    Stop Behavior
    -------------
    :meth:`stop` closes the listener and every open connection (to break
    blocking ``accept``/``recv`` calls) and removes the socket file.
    """

    def __init__(self, cfg: ControlServerConfig, dispatcher: ControlDispatcher):
        self._cfg = cfg
        self._dispatcher = dispatcher
        self._stop = threading.Event()
        self._listener: Optional[socket.socket] = None
        self._conns: Set[socket.socket] = set()
        self._conns_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def path(self) -> str:
        return self._cfg.path

    def start(self) -> None:
        """
        Bind the control socket and start accepting connections.

        Raises
        ------
        TransportSetupError
            If the socket cannot be bound.
        """
        try:
            if os.path.lexists(self._cfg.path):
                os.unlink(self._cfg.path)
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.bind(self._cfg.path)
                sock.listen(self._cfg.backlog)
                sock.settimeout(self._cfg.accept_poll_s)
            except OSError:
                sock.close()
                raise
        except OSError as e:
            raise TransportSetupError(f"failed to bind control socket {self._cfg.path}: {e}") from e

        self._listener = sock
        logger.info("Control socket listening on {}", self._cfg.path)
        self._thread = threading.Thread(
            target=self._accept_loop,
            args=(sock,),
            name="control-accept",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

        if self._listener is not None:
            try:
                self._listener.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._listener.close()

        with self._conns_lock:
            conns = list(self._conns)
        for conn in conns:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

        try:
            os.unlink(self._cfg.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove control socket {}: {}", self._cfg.path, e)

    def join(self, timeout: float | None = 2.0) -> None:
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def _accept_loop(self, listener: socket.socket) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._stop.is_set():
                    break
                logger.error("Failed to accept control connection: {!r}", e)
                continue

            conn.settimeout(None)
            with self._conns_lock:
                self._conns.add(conn)
            threading.Thread(
                target=self._handle_connection,
                args=(conn,),
                name="control-conn",
                daemon=True,
            ).start()

    def _handle_connection(self, conn: socket.socket) -> None:
        buf = bytearray()
        discarding = False
        try:
            while not self._stop.is_set():
                chunk = conn.recv(self._cfg.recv_size)
                if not chunk:
                    break
                buf.extend(chunk)

                if discarding:
                    idx = buf.find(b"\n")
                    if idx < 0:
                        buf.clear()
                        continue
                    del buf[: idx + 1]
                    discarding = False

                for line in iter_lines(buf):
                    self._dispatcher.handle_line(line)

                if len(buf) > self._cfg.max_line_bytes:
                    logger.warning(
                        "Discarding malformed control command: line exceeds {} bytes",
                        self._cfg.max_line_bytes,
                    )
                    buf.clear()
                    discarding = True

            # A final command without a trailing newline.
            if buf.strip() and not discarding and not self._stop.is_set():
                buf.extend(b"\n")
                for line in iter_lines(buf):
                    self._dispatcher.handle_line(line)
        except OSError as e:
            if not self._stop.is_set():
                logger.error("Error reading from control connection: {!r}", e)
        finally:
            with self._conns_lock:
                self._conns.discard(conn)
            conn.close()
