"""
Alert lifecycle engine.

This module contains the stateful lifecycle manager that turns readings into:
- the set of active alerts (at most one per parameter), and
- an append-only log of OPEN / RESOLVED entries written through a log sink.

Per parameter the engine runs a two-state machine:

- IN_RANGE -> OUT_OF_RANGE: record an opened issue, create the ActiveAlert
- OUT_OF_RANGE -> IN_RANGE: record a resolved issue, delete the ActiveAlert
- self transitions: nothing

Transitions are edge-triggered, so evaluating the same reading twice has no
effect the second time.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from hydroalert.config.settings import Settings
from hydroalert.core.alert.alert_base import EvaluationResult, SinkErrorObserver
from hydroalert.core.alert.evaluation import check_reading, duration_minutes, reading_timestamp
from hydroalert.core.config.threshold_table import ThresholdTable
from hydroalert.core.state.alert_history import AlertHistory
from hydroalert.domain.clock import as_utc, utc_now
from hydroalert.domain.errors import SinkWriteError
from hydroalert.domain.models import (
    ActiveAlert,
    AlertStatus,
    LogEntry,
    OpenedIssue,
    Reading,
    ResolvedIssue,
)
from hydroalert.sink.base import LogSink

logger = logging.getLogger(__name__)


def merge_history(cached: List[LogEntry], stored: List[LogEntry], limit: int) -> List[LogEntry]:
    """
    Merge cached and sink-listed entries, newest first, without duplicates.

    Cached entries win when both sides hold the same id.
    """
    seen = {e.id for e in cached}
    merged = list(cached) + [e for e in stored if e.id not in seen]
    merged.sort(key=lambda e: e.timestamp, reverse=True)
    return merged[:limit]


@dataclass
class AlertEngine:
    """
    Edge-triggered alert engine (OPEN / RESOLVED).

    The engine exclusively owns the active-alert set and the recent-history
    cache. Nothing outside the engine can mutate them; readers get copies.

    Concurrency Model
    -----------------
    - ``_eval_lock`` serialises whole ``evaluate`` calls, including sink
      writes, so the check-then-write sequence for a parameter cannot race.
    - ``_state_lock`` guards the active-alert dict and the history cache. It
      is held only while committing a transition or copying for a reader, so
      reads are never blocked by sink I/O.
    - An ActiveAlert is created only after its OPEN entry was appended, and
      deleted only after its RESOLVED entry was appended. Every state a reader
      can observe therefore matches the durable log.

    Parameters
    ----------
    thresholds
        Safe range per parameter.
    sink
        Append-only store for log entries.
    history_limit
        Size of the in-process history cache.
    history_from_sink
        When the cache cannot satisfy ``history(limit)``, also read ``sink.list``.
    on_sink_error
        Optional observer called for every failed append.
    """

    thresholds: ThresholdTable
    sink: LogSink
    history_limit: int = Settings.history_limit
    history_from_sink: bool = True
    on_sink_error: Optional[SinkErrorObserver] = None

    _active: Dict[str, ActiveAlert] = field(default_factory=dict, init=False, repr=False)
    _history: AlertHistory = field(init=False, repr=False)
    _eval_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _state_lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self) -> None:
        self._history = AlertHistory(limit=self.history_limit)

    def evaluate(self, reading: Reading, now: Optional[datetime] = None) -> EvaluationResult:
        """
        Evaluate one reading and apply any transitions it causes.

        Parameters
        ----------
        reading
            Mapping of parameter name to value, optionally with a
            ``timestamp`` field holding the sensor time.
        now
            Evaluation time. If None, uses the current UTC time.

        Returns
        -------
        EvaluationResult
            Entries written and sink failures. Malformed values and unknown
            parameters never show up here; they are skipped.
        """
        ts = as_utc(now) if now is not None else utc_now()
        raw = MappingProxyType(dict(reading))
        result = EvaluationResult()

        with self._eval_lock:
            # Only this method mutates _active and it holds _eval_lock.
            with self._state_lock:
                active = dict(self._active)

            opened: List[OpenedIssue] = []
            resolved: List[ResolvedIssue] = []

            for check in check_reading(self.thresholds, raw):
                prev = active.get(check.parameter)

                if check.out_of_range and prev is None:
                    opened.append(
                        OpenedIssue(
                            parameter=check.parameter,
                            value=check.value,
                            threshold=check.threshold.label,
                        )
                    )
                elif not check.out_of_range and prev is not None:
                    resolved.append(
                        ResolvedIssue(
                            parameter=check.parameter,
                            value=check.value,
                            resolved_at=ts,
                            duration_minutes=duration_minutes(prev.opened_at, ts),
                            range=check.threshold.label,
                            triggered_id=prev.log_entry_id,
                        )
                    )

            if opened:
                entry = self._append(
                    LogEntry(timestamp=ts, status=AlertStatus.OPEN, issues=tuple(opened), raw_reading=raw),
                    result,
                )
                if entry is not None:
                    # Alerts are dated by sensor time so durations ignore ingestion lag.
                    opened_at = reading_timestamp(raw, default=ts)
                    with self._state_lock:
                        for issue in opened:
                            self._active[issue.parameter] = ActiveAlert(
                                parameter=issue.parameter,
                                opened_at=opened_at,
                                log_entry_id=str(entry.id),
                                value=issue.value,
                                threshold=issue.threshold,
                            )
                        self._history.add(entry)
                    logger.info("Alert opened for %s (entry %s)", ", ".join(entry.parameters), entry.id)

            if resolved:
                entry = self._append(
                    LogEntry(timestamp=ts, status=AlertStatus.RESOLVED, issues=tuple(resolved), raw_reading=raw),
                    result,
                )
                if entry is not None:
                    with self._state_lock:
                        for issue in resolved:
                            self._active.pop(issue.parameter, None)
                        self._history.add(entry)
                    logger.info("Alert resolved for %s (entry %s)", ", ".join(entry.parameters), entry.id)

        return result

    def active_alerts(self) -> Mapping[str, ActiveAlert]:
        """
        Return a read-only snapshot of the active alerts keyed by parameter.
        """
        with self._state_lock:
            return MappingProxyType(dict(self._active))

    def history(self, limit: int = Settings.history_view_rows) -> List[LogEntry]:
        """
        Return up to ``limit`` log entries, newest first.

        Entries written by this engine come from the local cache. If the cache
        holds fewer than ``limit`` entries and ``history_from_sink`` is set,
        entries listed by the sink (including other processes' entries) are
        merged in. A failing sink read falls back to the cache alone.
        """
        if limit <= 0:
            return []

        with self._state_lock:
            cached = self._history.latest(limit)

        if len(cached) >= limit or not self.history_from_sink:
            return cached

        lister = getattr(self.sink, "list", None)
        if lister is None:
            return cached

        try:
            stored = list(lister(limit))
        except Exception as e:
            logger.warning("Log sink listing failed, serving cached history only: %r", e)
            return cached

        return merge_history(cached, stored, limit)

    def _append(self, entry: LogEntry, result: EvaluationResult) -> Optional[LogEntry]:
        """
        Write one entry through the sink and record the outcome.

        Returns
        -------
        LogEntry or None
            The stored entry (with id) or None if the write failed.
        """
        try:
            entry_id = self.sink.append(entry)
        except SinkWriteError as e:
            error = e
        except Exception as e:
            error = SinkWriteError(f"{entry.status.value} entry append failed: {e!r}")
            error.__cause__ = e
        else:
            stored = entry.with_id(str(entry_id))
            result.entries.append(stored)
            return stored

        logger.warning(
            "Log sink rejected %s entry for %s: %s",
            entry.status.value,
            ", ".join(entry.parameters),
            error,
        )
        result.failures.append(error)
        if self.on_sink_error is not None:
            try:
                self.on_sink_error(error, entry)
            except Exception:
                logger.exception("Sink error observer failed")
        return None
