from __future__ import annotations

import logging
import threading
from queue import Empty, Queue

from hydroalert.core.alert.alert_engine import AlertEngine
from hydroalert.domain.models import Reading

logger = logging.getLogger(__name__)


def drain_latest(q: "Queue[Reading]", first: Reading) -> tuple[Reading, int]:
    """
    Discard every queued reading except the newest one.

    Returns
    -------
    tuple
        The newest reading and how many older readings were skipped.
    """
    latest = first
    skipped = 0
    while True:
        try:
            latest = q.get_nowait()
        except Empty:
            return latest, skipped
        skipped += 1


class AlertWorkerThread:
    """
    Worker thread that feeds readings to the alert engine.

    Responsibilities
    ----------------
    - Consume readings from a queue.
    - Call ``AlertEngine.evaluate`` for them, one at a time.

    Concurrency Model
    -----------------
    - This is the only caller of ``evaluate`` in the runtime, so evaluations
      are dispatched on a single thread.
    - With ``coalesce`` enabled, a backlog is collapsed to its most recent
      reading before evaluating (most-recent-wins).
    - Exceptions from the engine are logged and do not kill the thread.

    Parameters
    ----------
    engine
        Alert engine that owns the active-alert state.
    readings_q
        Queue of decoded readings.
    stop_event
        Thread stop signal.
    coalesce
        Evaluate only the newest reading of a backlog.
    """

    def __init__(
        self,
        engine: AlertEngine,
        readings_q: "Queue[Reading]",
        stop_event: threading.Event,
        coalesce: bool = True,
    ):
        self._engine = engine
        self._q = readings_q
        self._stop = stop_event
        self._coalesce = coalesce
        self._thread = threading.Thread(target=self._run, name="alert-worker", daemon=True)
        self.evaluated = 0
        self.skipped = 0

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def process(self, reading: Reading) -> None:
        """
        Evaluate one reading (after coalescing, if enabled).
        """
        if self._coalesce:
            reading, skipped = drain_latest(self._q, reading)
            self.skipped += skipped

        result = self._engine.evaluate(reading)
        self.evaluated += 1
        for failure in result.failures:
            logger.error("Alert log write failed, transition deferred: %s", failure)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                reading = self._q.get(timeout=0.5)
            except Empty:
                continue

            try:
                self.process(reading)
            except Exception:
                logger.exception("Alert evaluation failed")
