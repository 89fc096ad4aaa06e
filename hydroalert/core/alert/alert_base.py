"""
Alert evaluation contracts.

This module defines the data structures passed between:

- the stateless threshold checks, producing -> class:`ParameterCheck`
- the alert engine (stateful lifecycle manager), consuming checks and
  producing -> class:`EvaluationResult`

Checks are immutable so they can be built outside any lock and handed to the
engine without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from hydroalert.domain.errors import SinkWriteError
from hydroalert.domain.models import AlertStatus, LogEntry, Threshold


@dataclass(frozen=True)
class ParameterCheck:
    """
    Result of checking one parameter of one reading against its threshold.

    Parameters
    ----------
    parameter
        Parameter name.
    value
        Parsed numeric value.
    threshold
        Safe range the value was compared with.
    out_of_range
        True when ``value < min`` or ``value > max``.
    """

    parameter: str
    value: float
    threshold: Threshold
    out_of_range: bool


@dataclass
class EvaluationResult:
    """
    Outcome of one ``AlertEngine.evaluate`` call.

    Parameters
    ----------
    entries
        Log entries that were durably appended, with their assigned ids.
        At most one OPEN and one RESOLVED entry.
    failures
        Sink write failures. The state transitions gated on those writes were
        not applied and will be retried by the next evaluation.
    """

    entries: List[LogEntry] = field(default_factory=list)
    failures: List[SinkWriteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def opened(self) -> Optional[LogEntry]:
        return next((e for e in self.entries if e.status is AlertStatus.OPEN), None)

    @property
    def resolved(self) -> Optional[LogEntry]:
        return next((e for e in self.entries if e.status is AlertStatus.RESOLVED), None)


# Observer called for every failed append: (error, entry that was not written)
SinkErrorObserver = Callable[[SinkWriteError, LogEntry], None]
