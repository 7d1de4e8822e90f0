from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from eww_notify.constants import EWW_BINARY, EWW_VARIABLE, IPC_SOCKET_PATH
from eww_notify.domain.models import Orientation, Urgency


@dataclass(frozen=True)
class UrgencyTimeouts:
    """Expiry in seconds per urgency class; 0 means persistent."""
    low: int = 5
    normal: int = 10
    critical: int = 0

    def for_urgency(self, urgency: Urgency) -> int:
        if urgency is Urgency.LOW:
            return self.low
        if urgency is Urgency.CRITICAL:
            return self.critical
        return self.normal


@dataclass(frozen=True)
class TimeoutPolicy:
    """
    Precedence between the configured and the caller-requested timeout.

    With ``honor_requested`` False (the default) the caller's expire timeout
    is accepted but ignored and the urgency table always wins.
    """
    honor_requested: bool = False


@dataclass(frozen=True)
class EwwConfig:
    """eww CLI invocation settings."""
    binary: str = EWW_BINARY
    variable: str = EWW_VARIABLE
    timeout_s: float = 5.0


@dataclass(frozen=True)
class WebhookConfigData:
    """Webhook signal sink configuration (URL + auth)."""
    url: str
    auth_header: Optional[str] = None
    timeout_s: float = 3.0
    verify_tls: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass(frozen=True)
class AppConfig:
    """
    Root daemon configuration loaded from YAML.

    Every key is optional; absent keys fall back to the defaults below and an
    explicit 0 is honored (e.g. ``timeout.urgency.low: 0`` makes low-urgency
    notifications persistent).
    """
    max_notifications: int = 0
    orientation: Orientation = Orientation.VERTICAL
    default_notification_key: Optional[str] = None
    window: Optional[str] = None
    timeouts: UrgencyTimeouts = field(default_factory=UrgencyTimeouts)
    battery_timeout_s: int = 10
    timeout_policy: TimeoutPolicy = field(default_factory=TimeoutPolicy)
    sweep_interval_s: float = 30.0
    control_socket: str = IPC_SOCKET_PATH
    eww: EwwConfig = field(default_factory=EwwConfig)
    webhook: Optional[WebhookConfigData] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: bool = False


DEFAULT_CONFIG = AppConfig()


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"config section '{key}' must be a mapping")
    return value


def _non_negative_int(value: Any, name: str) -> int:
    n = int(value)
    if n < 0:
        raise ValueError(f"{name} must be >= 0, got {n}")
    return n


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def resolve_default_config_path() -> Optional[Path]:
    """
    Resolve config.yaml location.

    Priority:
    1) EWW_NOTIFY_CONFIG env var if provided
    2) $XDG_CONFIG_HOME/end/config.yaml
    3) ~/.config/end/config.yaml

    Returns None when no candidate exists.
    """
    env = os.getenv("EWW_NOTIFY_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    base = os.getenv("XDG_CONFIG_HOME")
    config_dir = Path(base) if base else Path.home() / ".config"
    candidate = config_dir / "end" / "config.yaml"
    if candidate.exists():
        return candidate
    return None


def parse_app_config(raw: Dict[str, Any]) -> AppConfig:
    """
    Convert a raw YAML mapping into typed config objects, merging defaults.

    Raises
    ------
    ValueError
        If a value has the wrong type or is out of range.
    """
    d = DEFAULT_CONFIG

    # ---- timeouts ----
    u = _section(_section(raw, "timeout"), "urgency")
    timeouts = UrgencyTimeouts(
        low=_non_negative_int(u.get("low", d.timeouts.low), "timeout.urgency.low"),
        normal=_non_negative_int(u.get("normal", d.timeouts.normal), "timeout.urgency.normal"),
        critical=_non_negative_int(u.get("critical", d.timeouts.critical), "timeout.urgency.critical"),
    )

    tp = _section(raw, "timeout_policy")
    timeout_policy = TimeoutPolicy(
        honor_requested=bool(tp.get("honor_requested", d.timeout_policy.honor_requested)),
    )

    # ---- eww ----
    e = _section(raw, "eww")
    eww = EwwConfig(
        binary=str(e.get("binary", d.eww.binary)),
        variable=str(e.get("variable", d.eww.variable)),
        timeout_s=float(e.get("timeout_s", d.eww.timeout_s)),
    )

    # ---- webhook ----
    webhook = None
    w = raw.get("webhook")
    if w:
        if not isinstance(w, dict) or "url" not in w:
            raise ValueError("webhook section requires a 'url'")
        webhook = WebhookConfigData(
            url=str(w["url"]),
            auth_header=_optional_str(w.get("auth_header")),
            timeout_s=float(w.get("timeout_s", 3.0)),
            verify_tls=bool(w.get("verify_tls", True)),
        )

    # ---- logging ----
    lg = _section(raw, "logging")
    logging_cfg = LoggingConfig(
        level=str(lg.get("level", d.logging.level)).upper(),
        file=_optional_str(lg.get("file", d.logging.file)),
    )

    sweep_interval_s = float(raw.get("sweep_interval_s", d.sweep_interval_s))
    if sweep_interval_s <= 0:
        raise ValueError("sweep_interval_s must be > 0")

    return AppConfig(
        max_notifications=_non_negative_int(raw.get("max_notifications", d.max_notifications), "max_notifications"),
        orientation=Orientation.parse(raw.get("orientation", d.orientation.value)),
        default_notification_key=_optional_str(raw.get("default_notification_key")),
        window=_optional_str(raw.get("window")),
        timeouts=timeouts,
        battery_timeout_s=_non_negative_int(raw.get("battery_timeout_s", d.battery_timeout_s), "battery_timeout_s"),
        timeout_policy=timeout_policy,
        sweep_interval_s=sweep_interval_s,
        control_socket=str(raw.get("control_socket", d.control_socket)),
        eww=eww,
        webhook=webhook,
        logging=logging_cfg,
        debug=bool(raw.get("debug", d.debug)),
    )


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load daemon configuration from YAML.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution and
        falls back to built-in defaults when no file is found.

    Returns
    -------
    AppConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If an explicitly requested config file does not exist.
    ValueError
        If fields are invalid.
    """
    if path:
        cfg_path: Optional[Path] = Path(path).expanduser().resolve()
        if not cfg_path.exists():
            raise FileNotFoundError(f"Config not found: {cfg_path}")
    else:
        cfg_path = resolve_default_config_path()
        if cfg_path is None or not cfg_path.exists():
            logger.warning("No config file found, using defaults")
            return DEFAULT_CONFIG

    logger.info("Loading config from {}", cfg_path)
    return parse_app_config(_read_yaml(cfg_path))
