"""
Log sink contracts.

A log sink is the durable, append-only store that receives alert log
entries. The engine only needs ``append``; presentation layers that do not
share the engine's in-process cache read through ``list`` or ``subscribe``.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, runtime_checkable

from hydroalert.domain.models import LogEntry

EntryCallback = Callable[[LogEntry], None]
Unsubscribe = Callable[[], None]


class LogSink(Protocol):
    """
    Protocol interface for append-only alert log stores.

    Methods
    -------
    append(entry)
        Durably store an entry and return the id the store assigned to it.
    list(limit)
        Return up to ``limit`` stored entries, newest first.
    """

    def append(self, entry: LogEntry) -> str:
        """
        Store an entry.

        Parameters
        ----------
        entry
            Entry to store. Any ``id`` it carries is ignored.

        Returns
        -------
        str
            Opaque id assigned by the store.

        Raises
        ------
        SinkWriteError
            If the store rejected the write or could not be reached.
        """
        ...

    def list(self, limit: int) -> List[LogEntry]:
        ...


@runtime_checkable
class SubscribableLogSink(LogSink, Protocol):
    """A log sink that can push newly appended entries to callbacks."""

    def subscribe(self, callback: EntryCallback) -> Unsubscribe:
        """
        Register a callback for every entry appended from now on.

        Returns
        -------
        callable
            Calling it removes the subscription.
        """
        ...
