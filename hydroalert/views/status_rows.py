"""
Row builders for the status, history and detailed-issues views.

These functions only format data that the engine already exposes; they hold
no state and perform no evaluation, so any front end (terminal, web, Qt) can
render them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from hydroalert.config.settings import HISTORY_COLUMNS, Settings
from hydroalert.domain.clock import as_utc
from hydroalert.domain.models import ActiveAlert, AlertStatus, LogEntry, ResolvedIssue

ALL_CLEAR = "All parameters are within safe range."
UNKNOWN_TIME = "Unknown time"

HistoryRow = Tuple[str, ...]
IssueRow = Tuple[str, str, str]

_STATUS_BADGES = {
    AlertStatus.OPEN: "ALERT",
    AlertStatus.RESOLVED: "RESOLVED",
}


def local_time(ts: Optional[datetime]) -> str:
    """Render a timestamp in the local timezone, e.g. ``2026-01-01 11:00:00``."""
    if ts is None:
        return UNKNOWN_TIME
    return as_utc(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _cell(value: Any) -> str:
    if value is None or value == "":
        return "-"
    return str(value)


def current_status_lines(active: Mapping[str, ActiveAlert]) -> List[str]:
    """
    One line per active alert, or a single all-clear line.
    """
    if not active:
        return [ALL_CLEAR]

    lines: List[str] = []
    for parameter, alert in active.items():
        since = local_time(alert.opened_at) if alert.log_entry_id else UNKNOWN_TIME
        lines.append(f"{parameter.upper()} is out of range since {since}")
    return lines


def history_rows(
    entries: Sequence[LogEntry],
    columns: Sequence[str] = HISTORY_COLUMNS,
    limit: int = Settings.history_view_rows,
) -> List[HistoryRow]:
    """
    Build history table rows: timestamp, one raw value per column, status badge.
    """
    rows: List[HistoryRow] = []
    for e in list(entries)[:limit]:
        raw = e.raw_reading
        rows.append(
            (
                local_time(e.timestamp),
                *(_cell(raw.get(c)) for c in columns),
                _STATUS_BADGES.get(e.status, "-"),
            )
        )
    return rows


def issue_rows(entry: LogEntry) -> List[IssueRow]:
    """
    Build detailed-issue rows (parameter, value, threshold) for one entry.
    """
    rows: List[IssueRow] = []
    for issue in entry.issues:
        band = issue.range if isinstance(issue, ResolvedIssue) else issue.threshold
        rows.append((issue.parameter.upper(), _cell(issue.value), band))
    return rows
