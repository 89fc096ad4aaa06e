from __future__ import annotations

import threading
from dataclasses import dataclass
from queue import Queue

from hydroalert.core.alert.alert_engine import AlertEngine
from hydroalert.domain.models import Reading
from hydroalert.runtime.alert_worker_thread import AlertWorkerThread
from hydroalert.runtime.readings_receiver_thread import ReadingsReceiverConfig, ReadingsReceiverThread


@dataclass(frozen=True)
class MonitorRuntimeConfig:
    """
    Runtime configuration for thread orchestration and transport connection.

    Parameters
    ----------
    readings_host
        TCP host of the readings publisher.
    readings_port
        TCP port of the readings publisher.
    reconnect_delay_s
        Delay (seconds) between reconnect attempts after network errors.
    connect_timeout_s
        TCP connect timeout (seconds) used during initial connect.
    coalesce_readings
        Evaluate only the newest reading of a backlog.
    queue_size
        Capacity of the readings queue.
    """

    readings_host: str
    readings_port: int
    reconnect_delay_s: float = 0.5
    connect_timeout_s: float = 5.0
    coalesce_readings: bool = True
    queue_size: int = 5000


class MonitorRuntime:
    """
    Thread supervisor for the monitor.

    Thread Topology
    ---------------
    1) ReadingsReceiverThread (I/O)
       - owns the TCP connection
       - pushes decoded readings into `readings_q`

    2) AlertWorkerThread (business logic)
       - consumes readings
       - invokes AlertEngine.evaluate(), which writes to the log sink

    Notes
    -----
    - All threads are daemon threads; `stop()` still joins them for a clean shutdown.
    - The receiver evicts the oldest queued reading if the queue is full.
    """

    def __init__(self, cfg: MonitorRuntimeConfig, engine: AlertEngine):
        self._cfg = cfg
        self._engine = engine
        self._stop = threading.Event()

        self.readings_q: "Queue[Reading]" = Queue(maxsize=cfg.queue_size)

        self._receiver = ReadingsReceiverThread(
            ReadingsReceiverConfig(
                host=cfg.readings_host,
                port=cfg.readings_port,
                reconnect_delay_s=cfg.reconnect_delay_s,
                connect_timeout_s=cfg.connect_timeout_s,
            ),
            readings_q=self.readings_q,
            stop_event=self._stop,
        )

        self._worker = AlertWorkerThread(
            engine=engine,
            readings_q=self.readings_q,
            stop_event=self._stop,
            coalesce=cfg.coalesce_readings,
        )

    @property
    def engine(self) -> AlertEngine:
        return self._engine

    def start(self) -> None:
        """
        Start the worker first so it is ready before readings flow in.
        """
        self._worker.start()
        self._receiver.start()

    def stop(self) -> None:
        self._receiver.stop()
        self._worker.stop()

        self._receiver.join(timeout=2.0)
        self._worker.join(timeout=2.0)
