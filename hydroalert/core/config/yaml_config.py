from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from hydroalert.config.settings import Settings
from hydroalert.domain.errors import ConfigError
from hydroalert.domain.models import Threshold

SINK_KINDS = ("memory", "firebase")


@dataclass(frozen=True)
class TcpClientConfig:
    """TCP client connection settings used by the readings receiver."""
    host: str = "127.0.0.1"
    port: int = 9009
    timeout_s: float = 5.0
    reconnect_delay_s: float = 0.5


@dataclass(frozen=True)
class FirebaseConfigData:
    """Firebase Realtime Database settings for the alert log."""
    database_url: str
    path: str = "parameter_logs"
    auth_token: Optional[str] = None
    timeout_s: float = 3.0
    verify_tls: bool = True
    retry_count: int = 2
    retry_backoff_s: float = 0.5


@dataclass(frozen=True)
class LogSinkConfig:
    """Which append-only store receives log entries."""
    kind: str = "memory"
    firebase: Optional[FirebaseConfigData] = None


@dataclass(frozen=True)
class AlertConfig:
    """Alert engine configuration."""
    history_limit: int = Settings.history_limit
    history_from_sink: bool = True
    coalesce_readings: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """
    Root application configuration loaded from YAML.

    Every section is optional; a missing file section falls back to the
    built-in defaults from :class:`~hydroalert.config.settings.Settings`.
    """
    thresholds: List[Threshold]
    alerts: AlertConfig = field(default_factory=AlertConfig)
    transport: TcpClientConfig = field(default_factory=TcpClientConfig)
    log_sink: LogSinkConfig = field(default_factory=LogSinkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError("config.yaml must contain a YAML mapping at the root")
    return data


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) HYDROALERT_CONFIG env var if provided
    2) config.yaml next to the executable
    3) ./config.yaml in current working directory
    """
    env = os.getenv("HYDROALERT_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    exe_dir = Path(sys.executable).resolve().parent
    candidate = exe_dir / "config.yaml"
    if candidate.exists():
        return candidate

    return Path("config.yaml").resolve()


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


def _flag(raw: Mapping[str, Any], key: str, default: bool, where: str) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{where}.{key}' must be true or false, got {value!r}")
    return value


def parse_thresholds(raw: Mapping[str, Any]) -> List[Threshold]:
    """
    Parse the ``thresholds`` section.

    Accepts a mapping of parameter -> {min, max, units}. Parameters missing
    from the section keep their default range; listing a parameter that has
    no default adds it.
    """
    merged: Dict[str, Threshold] = dict(Settings().default_thresholds())

    for name, item in raw.items():
        if not isinstance(item, Mapping):
            raise ConfigError(f"Threshold for {name!r} must be a mapping with 'min' and 'max'")
        try:
            t = Threshold(
                parameter=str(name),
                min_value=float(item["min"]),
                max_value=float(item["max"]),
                units=str(item.get("units", "")),
            )
        except KeyError as e:
            raise ConfigError(f"Threshold for {name!r} is missing {e.args[0]!r}") from e
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Threshold for {name!r} has a non-numeric bound") from e
        if t.min_value > t.max_value:
            raise ConfigError(f"Threshold for {name!r}: min {t.min_value} is greater than max {t.max_value}")
        merged[t.parameter] = t

    return list(merged.values())


def parse_app_config(raw: Mapping[str, Any]) -> AppConfig:
    """
    Convert an already-loaded YAML mapping into typed config objects.

    Raises
    ------
    ConfigError
        If required fields are missing or invalid.
    """
    # ---- thresholds ----
    thresholds = parse_thresholds(_section(raw, "thresholds"))

    # ---- alerts ----
    a = _section(raw, "alerts")
    alerts = AlertConfig(
        history_limit=int(a.get("history_limit", Settings.history_limit)),
        history_from_sink=_flag(a, "history_from_sink", True, "alerts"),
        coalesce_readings=_flag(a, "coalesce_readings", True, "alerts"),
    )
    if alerts.history_limit <= 0:
        raise ConfigError("alerts.history_limit must be positive")

    # ---- transport ----
    t = _section(_section(raw, "transport"), "tcp_client")
    transport = TcpClientConfig(
        host=str(t.get("host", "127.0.0.1")),
        port=int(t.get("port", 9009)),
        timeout_s=float(t.get("timeout_s", 5.0)),
        reconnect_delay_s=float(t.get("reconnect_delay_s", 0.5)),
    )

    # ---- log sink ----
    s = _section(raw, "log_sink")
    kind = str(s.get("kind", "memory")).lower()
    if kind not in SINK_KINDS:
        raise ConfigError(f"log_sink.kind must be one of {SINK_KINDS}, got {kind!r}")

    firebase = None
    fb = _section(s, "firebase")
    if fb:
        if "database_url" not in fb:
            raise ConfigError("log_sink.firebase.database_url is required")
        firebase = FirebaseConfigData(
            database_url=str(fb["database_url"]),
            path=str(fb.get("path", "parameter_logs")),
            auth_token=fb.get("auth_token"),
            timeout_s=float(fb.get("timeout_s", 3.0)),
            verify_tls=_flag(fb, "verify_tls", True, "log_sink.firebase"),
            retry_count=int(fb.get("retry_count", 2)),
            retry_backoff_s=float(fb.get("retry_backoff_s", 0.5)),
        )
    if kind == "firebase" and firebase is None:
        raise ConfigError("log_sink.kind is 'firebase' but log_sink.firebase is not configured")

    # ---- logging ----
    lg = _section(raw, "logging")
    logging_cfg = LoggingConfig(level=str(lg.get("level", "INFO")).upper())

    return AppConfig(
        thresholds=thresholds,
        alerts=alerts,
        transport=transport,
        log_sink=LogSinkConfig(kind=kind, firebase=firebase),
        logging=logging_cfg,
    )


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from YAML and convert into typed config objects.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ConfigError
        If required fields are missing or invalid.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    return parse_app_config(_read_yaml(cfg_path))
