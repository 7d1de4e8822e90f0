from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from eww_notify.domain.events import SignalEvent
from eww_notify.signals.payload import build_signal_payload


@dataclass(frozen=True)
class WebhookConfig:
    """
    Configuration for webhook-based signal delivery.

    Parameters
    ----------
    url
        Target webhook URL.
    timeout_s
        HTTP request timeout in seconds.
    verify_tls
        Whether to verify TLS certificates.
    auth_header
        Optional Authorization header value (e.g., Bearer token).
    """

    url: str
    timeout_s: float = 2.0
    verify_tls: bool = True
    auth_header: Optional[str] = None


class WebhookEmitter:
    """
    Signal sink that posts each event to an HTTP webhook as JSON.

    Notes
    -----
    - This class performs side effects (network I/O); the engine reaches it
      through `SignalWorkerThread` so it never blocks on the network.
    - HTTP errors are surfaced via ``raise_for_status()``.
    """

    def __init__(self, cfg: WebhookConfig):
        self._cfg = cfg

    def emit(self, event: SignalEvent) -> None:
        """
        Send a signal event to the configured webhook endpoint.

        Raises
        ------
        requests.HTTPError
            If the HTTP response status indicates an error.
        requests.RequestException
            For network-related errors.
        """
        headers = {"Content-Type": "application/json"}
        if self._cfg.auth_header:
            headers["Authorization"] = self._cfg.auth_header

        r = requests.post(
            self._cfg.url,
            json=build_signal_payload(event),
            headers=headers,
            timeout=self._cfg.timeout_s,
            verify=self._cfg.verify_tls,
        )
        r.raise_for_status()
