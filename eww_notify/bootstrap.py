from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from eww_notify.core.config.yaml_config import AppConfig, load_app_config
from eww_notify.core.engine import NotificationEngine
from eww_notify.core.state.notification_store import NotificationStore
from eww_notify.protocol.notifications_service import NotificationsService
from eww_notify.render.display import EwwDisplay
from eww_notify.render.eww_client import EwwClient
from eww_notify.runtime.daemon_runtime import DaemonRuntime, DaemonRuntimeConfig
from eww_notify.signals.base import FanoutSignalEmitter, LoggingSignalEmitter, SignalEmitter
from eww_notify.signals.signal_thread import SignalWorkerThread
from eww_notify.signals.webhook_emitter import WebhookConfig, WebhookEmitter


@dataclass(frozen=True)
class DaemonWiring:
    """Everything the CLI needs to run the daemon."""
    config: AppConfig
    store: NotificationStore
    engine: NotificationEngine
    service: NotificationsService
    runtime: DaemonRuntime


def build_display(cfg: AppConfig) -> EwwDisplay:
    return EwwDisplay(
        client=EwwClient(binary=cfg.eww.binary, timeout_s=cfg.eww.timeout_s),
        orientation=cfg.orientation,
        window=cfg.window,
        variable=cfg.eww.variable,
    )


def build_signal_worker(cfg: AppConfig) -> Optional[SignalWorkerThread]:
    if cfg.webhook is None:
        return None

    auth_header = cfg.webhook.auth_header
    if auth_header and not auth_header.startswith("Bearer "):
        auth_header = f"Bearer {auth_header}"

    return SignalWorkerThread(
        WebhookEmitter(
            WebhookConfig(
                url=cfg.webhook.url,
                auth_header=auth_header,
                timeout_s=cfg.webhook.timeout_s,
                verify_tls=cfg.webhook.verify_tls,
            )
        )
    )


def build_daemon_system(
    config_path: Optional[str] = None,
    cfg: Optional[AppConfig] = None,
    extra_signals: Optional[List[SignalEmitter]] = None,
) -> DaemonWiring:
    """
    Wire store, engine, collaborators and runtime from configuration.

    Parameters
    ----------
    config_path
        Explicit config.yaml path; ignored when `cfg` is given.
    cfg
        Already loaded configuration.
    extra_signals
        Additional signal sinks (e.g. a bus binding's signal emitter).
    """
    cfg = cfg or load_app_config(config_path)

    # --- STATE ---
    store = NotificationStore(max_notifications=cfg.max_notifications)

    # --- SIGNALS ---
    signal_worker = build_signal_worker(cfg)
    sinks: List[SignalEmitter] = [LoggingSignalEmitter()]
    if signal_worker is not None:
        sinks.append(signal_worker)
    sinks.extend(extra_signals or [])

    # --- ENGINE ---
    engine = NotificationEngine(
        store=store,
        display=build_display(cfg),
        signals=FanoutSignalEmitter(sinks),
        timeouts=cfg.timeouts,
        battery_timeout_s=cfg.battery_timeout_s,
        timeout_policy=cfg.timeout_policy,
        default_render_hint=cfg.default_notification_key,
        strict=cfg.debug,
    )

    # --- RUNTIME ---
    runtime = DaemonRuntime(
        cfg=DaemonRuntimeConfig(
            control_socket=cfg.control_socket,
            sweep_interval_s=cfg.sweep_interval_s,
        ),
        engine=engine,
        signal_worker=signal_worker,
    )

    return DaemonWiring(
        config=cfg,
        store=store,
        engine=engine,
        service=NotificationsService(engine),
        runtime=runtime,
    )
