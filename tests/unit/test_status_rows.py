"""
Unit tests for hydroalert.views.status_rows.

Validates the plain row builders used by front ends:
- current status lines (all clear vs. one line per active alert)
- history rows with raw values, placeholders and status badges
- detailed issue rows for OPEN and RESOLVED entries
"""

from __future__ import annotations

from datetime import datetime, timezone

from hydroalert.domain.models import ActiveAlert, AlertStatus, LogEntry, OpenedIssue, ResolvedIssue
from hydroalert.views.status_rows import ALL_CLEAR, UNKNOWN_TIME, current_status_lines, history_rows, issue_rows, local_time

T0 = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def test_current_status_all_clear() -> None:
    assert current_status_lines({}) == [ALL_CLEAR]


def test_current_status_lists_active_parameters() -> None:
    active = {
        "ph": ActiveAlert(parameter="ph", opened_at=T0, log_entry_id="e1"),
        "tds": ActiveAlert(parameter="tds", opened_at=T0, log_entry_id=""),
    }
    lines = current_status_lines(active)
    assert lines == [
        f"PH is out of range since {local_time(T0)}",
        f"TDS is out of range since {UNKNOWN_TIME}",
    ]


def test_history_rows_show_raw_values_and_badges() -> None:
    entries = [
        LogEntry(
            timestamp=T0,
            status=AlertStatus.RESOLVED,
            issues=(),
            raw_reading={"ph": 6.5, "temperature": 24, "humidity": 55},
            id="b",
        ),
        LogEntry(timestamp=T0, status=AlertStatus.OPEN, issues=(), raw_reading={"tds": 500}, id="a"),
    ]
    rows = history_rows(entries)

    assert rows[0] == (local_time(T0), "6.5", "24", "-", "55", "RESOLVED")
    assert rows[1] == (local_time(T0), "-", "-", "500", "-", "ALERT")
    assert len(history_rows(entries, limit=1)) == 1


def test_issue_rows_for_open_and_resolved_entries() -> None:
    opened = LogEntry(
        timestamp=T0,
        status=AlertStatus.OPEN,
        issues=(
            OpenedIssue("temperature", 40.0, "18–35"),
            OpenedIssue("ph", 8.25, "5.5–7.5"),
            OpenedIssue("tds", 1612.34567, "800–1600"),
        ),
        raw_reading={},
    )
    resolved = LogEntry(
        timestamp=T0,
        status=AlertStatus.RESOLVED,
        issues=(ResolvedIssue("ph", 7.0, T0, 5, "5.5–7.5", "e1"),),
        raw_reading={},
    )

    assert issue_rows(opened) == [
        ("TEMPERATURE", "40.0", "18–35"),
        ("PH", "8.25", "5.5–7.5"),
        ("TDS", "1612.34567", "800–1600"),
    ]
    assert issue_rows(resolved) == [("PH", "7.0", "5.5–7.5")]


def test_local_time_handles_missing_timestamp() -> None:
    assert local_time(None) == UNKNOWN_TIME
