from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, List

from hydroalert.domain.models import LogEntry
from hydroalert.sink.base import EntryCallback, Unsubscribe

logger = logging.getLogger(__name__)


@dataclass
class InMemoryLogSink:
    """
    Thread-safe, process-local append-only log.

    Used when no external store is configured, and as the reference sink in
    tests. Ids are sequential (``log-000001``, ``log-000002``, ...).

    Notes
    -----
    - Subscribers are called synchronously on the appending thread, after the
      entry is stored and outside the internal lock.
    - A subscriber that raises is logged; the append still succeeds.
    """

    id_prefix: str = "log-"

    _entries: Dict[str, LogEntry] = field(default_factory=dict, init=False, repr=False)
    _subscribers: List[EntryCallback] = field(default_factory=list, init=False, repr=False)
    _counter: Iterator[int] = field(default_factory=lambda: itertools.count(1), init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def append(self, entry: LogEntry) -> str:
        with self._lock:
            entry_id = f"{self.id_prefix}{next(self._counter):06d}"
            stored = entry.with_id(entry_id)
            self._entries[entry_id] = stored
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(stored)
            except Exception:
                logger.exception("Log subscriber failed for entry %s", entry_id)

        return entry_id

    def list(self, limit: int) -> List[LogEntry]:
        if limit <= 0:
            return []
        with self._lock:
            entries = list(self._entries.values())
        return list(reversed(entries))[:limit]

    def get(self, entry_id: str) -> LogEntry:
        with self._lock:
            return self._entries[entry_id]

    def subscribe(self, callback: EntryCallback) -> Unsubscribe:
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
