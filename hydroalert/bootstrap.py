from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from hydroalert.core.alert.alert_engine import AlertEngine
from hydroalert.core.config.threshold_table import ThresholdTable
from hydroalert.core.config.yaml_config import AppConfig, load_app_config
from hydroalert.runtime.monitor_runtime import MonitorRuntime, MonitorRuntimeConfig
from hydroalert.sink.base import EntryCallback, LogSink, SubscribableLogSink, Unsubscribe
from hydroalert.sink.firebase_sink import FirebaseLogSink, FirebaseSinkConfig
from hydroalert.sink.memory_sink import InMemoryLogSink


@dataclass(frozen=True)
class MonitorWiring:
    """Everything a front end needs to run and query the monitor."""
    config: AppConfig
    sink: LogSink
    engine: AlertEngine
    runtime: MonitorRuntime


def build_log_sink(cfg: AppConfig) -> LogSink:
    if cfg.log_sink.kind == "firebase" and cfg.log_sink.firebase is not None:
        fb = cfg.log_sink.firebase
        return FirebaseLogSink(
            FirebaseSinkConfig(
                database_url=fb.database_url,
                path=fb.path,
                auth_token=fb.auth_token,
                timeout_s=fb.timeout_s,
                verify_tls=fb.verify_tls,
                retry_count=fb.retry_count,
                retry_backoff_s=fb.retry_backoff_s,
            )
        )
    return InMemoryLogSink()


def watch_log(sink: LogSink, callback: EntryCallback) -> Optional[Unsubscribe]:
    """Subscribe to newly appended entries if the sink can push them, else return None."""
    if isinstance(sink, SubscribableLogSink):
        return sink.subscribe(callback)
    return None


def build_alert_engine(cfg: AppConfig, sink: LogSink) -> AlertEngine:
    return AlertEngine(
        thresholds=ThresholdTable.load(cfg.thresholds),
        sink=sink,
        history_limit=cfg.alerts.history_limit,
        history_from_sink=cfg.alerts.history_from_sink,
    )


def build_monitor_system(config_path: Optional[str] = None, cfg: Optional[AppConfig] = None) -> MonitorWiring:
    cfg = cfg or load_app_config(config_path)

    # --- LOG SINK ---
    sink = build_log_sink(cfg)

    # --- ALERTS ---
    engine = build_alert_engine(cfg, sink)

    # --- RUNTIME ---
    runtime = MonitorRuntime(
        MonitorRuntimeConfig(
            readings_host=cfg.transport.host,
            readings_port=cfg.transport.port,
            connect_timeout_s=cfg.transport.timeout_s,
            reconnect_delay_s=cfg.transport.reconnect_delay_s,
            coalesce_readings=cfg.alerts.coalesce_readings,
        ),
        engine=engine,
    )

    return MonitorWiring(config=cfg, sink=sink, engine=engine, runtime=runtime)
