"""
Domain models and enums.

This module defines the core domain-level types used across the system:
- Per-parameter safe ranges (`Threshold`)
- Alert log vocabulary (`AlertStatus`, `OpenedIssue`, `ResolvedIssue`)
- The append-only log record (`LogEntry`)
- `ActiveAlert`, which represents a parameter that is out of range *now*

These are immutable (frozen) dataclasses so they can be shared safely between
the evaluation thread, the log sinks and presentation code.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

Reading = Mapping[str, Any]


def format_bound(value: float) -> str:
    """
    Render a threshold bound the way it appears in alert logs.

    Integral bounds are written without a fractional part (``18`` rather
    than ``18.0``) so the range labels read ``18–35`` and ``5.5–7.5``.
    """
    f = float(value)
    if f.is_integer():
        return str(int(f))
    return repr(f)


class AlertStatus(str, Enum):
    """
    Status of a log entry.

    Members
    -------
    OPEN : str
        One or more parameters just went out of range.
    RESOLVED : str
        One or more parameters just returned to their safe range.
    """

    OPEN = "alert"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Threshold:
    """
    Inclusive safe range for one parameter.

    Parameters
    ----------
    parameter
        Reading key this range applies to (e.g. "ph", "temperature").
    min_value
        Lowest value still considered safe.
    max_value
        Highest value still considered safe.
    units
        Display units (e.g. "°C", "ppm"). Not used for evaluation.
    """

    parameter: str
    min_value: float
    max_value: float
    units: str = ""

    def contains(self, value: float) -> bool:
        return self.min_value <= value <= self.max_value

    @property
    def label(self) -> str:
        return f"{format_bound(self.min_value)}–{format_bound(self.max_value)}"


@dataclass(frozen=True)
class OpenedIssue:
    """
    A parameter that transitioned from in range to out of range.

    Parameters
    ----------
    parameter
        Parameter name.
    value
        Offending value.
    threshold
        Range label, e.g. ``"18–35"``.
    """

    parameter: str
    value: float
    threshold: str


@dataclass(frozen=True)
class ResolvedIssue:
    """
    A parameter that transitioned back into its safe range.

    Parameters
    ----------
    parameter
        Parameter name.
    value
        In-range value that resolved the alert.
    resolved_at
        Evaluation time at which the resolution was observed.
    duration_minutes
        Whole minutes between the opening reading and ``resolved_at``.
    range
        Range label, e.g. ``"18–35"``.
    triggered_id
        Id of the OPEN log entry that this resolution closes.
    """

    parameter: str
    value: float
    resolved_at: datetime
    duration_minutes: int
    range: str
    triggered_id: str


IssueDetail = Union[OpenedIssue, ResolvedIssue]


@dataclass(frozen=True)
class LogEntry:
    """
    Durable record of a batch of simultaneous transitions.

    One entry holds either opens only or resolves only. The ``id`` is
    assigned by the log sink when the entry is appended; entries built by
    the engine carry ``None`` until then.

    Parameters
    ----------
    timestamp
        Evaluation time of the batch.
    status
        OPEN or RESOLVED.
    issues
        Ordered issue details (never empty for a written entry).
    raw_reading
        The reading that produced the transitions.
    id
        Opaque sink-assigned identifier.
    """

    timestamp: datetime
    status: AlertStatus
    issues: Tuple[IssueDetail, ...]
    raw_reading: Reading
    id: Optional[str] = None

    def with_id(self, entry_id: str) -> "LogEntry":
        return replace(self, id=entry_id)

    @property
    def parameters(self) -> Tuple[str, ...]:
        return tuple(i.parameter for i in self.issues)


@dataclass(frozen=True)
class ActiveAlert:
    """
    A parameter that is currently out of its safe range.

    Parameters
    ----------
    parameter
        Parameter name (the engine keys active alerts by it).
    opened_at
        Sensor time of the reading that opened the alert.
    log_entry_id
        Id of the OPEN log entry that recorded the opening.
    value
        Value that opened the alert.
    threshold
        Range label at opening time.
    """

    parameter: str
    opened_at: datetime
    log_entry_id: str
    value: Optional[float] = None
    threshold: str = ""
