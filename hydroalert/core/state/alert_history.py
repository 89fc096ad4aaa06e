from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from itertools import islice
from typing import Deque, List

from hydroalert.domain.models import LogEntry


@dataclass
class AlertHistory:
    """
    Bounded in-memory cache of log entries written by this process.

    Entries are kept newest first. When the cache is full the oldest entry is
    evicted; the log sink remains the durable source for anything older.

    Notes
    -----
    - This cache is intentionally simple and not thread-safe.
      Synchronization is handled by the owning `AlertEngine`.

    Parameters
    ----------
    limit
        Maximum number of entries kept.
    """

    limit: int = 100
    _entries: Deque[LogEntry] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise ValueError("history limit must be positive")
        self._entries = deque(maxlen=self.limit)

    def add(self, entry: LogEntry) -> None:
        """
        Record a newly written entry as the most recent one.

        Parameters
        ----------
        entry
            LogEntry with its sink-assigned id.
        """
        self._entries.appendleft(entry)

    def latest(self, limit: int) -> List[LogEntry]:
        """
        Return up to ``limit`` entries, newest first.
        """
        if limit <= 0:
            return []
        return list(islice(self._entries, limit))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
