"""
Unit tests for hydroalert.domain.records.

Validates the stored document shape used by log sinks:
- OPEN and RESOLVED issue fields and names
- datetimes inside the raw reading become ISO strings
- decoding restores typed entries and rejects broken documents
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from hydroalert.domain.models import AlertStatus, LogEntry, OpenedIssue, ResolvedIssue
from hydroalert.domain.records import entry_from_record, entry_to_record

T0 = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def test_open_entry_document_shape() -> None:
    entry = LogEntry(
        timestamp=T0,
        status=AlertStatus.OPEN,
        issues=(OpenedIssue("temperature", 40.0, "18–35"),),
        raw_reading={"temperature": 40, "timestamp": T0},
        id="ignored",
    )
    doc = entry_to_record(entry)

    assert doc == {
        "timestamp": "2026-01-01T10:00:00.000Z",
        "status": "alert",
        "issues": [{"parameter": "temperature", "value": 40.0, "threshold": "18–35"}],
        "raw": {"temperature": 40, "timestamp": "2026-01-01T10:00:00.000Z"},
    }


def test_resolved_entry_document_shape_and_decode() -> None:
    issue = ResolvedIssue(
        parameter="ph",
        value=6.8,
        resolved_at=T0,
        duration_minutes=7,
        range="5.5–7.5",
        triggered_id="-Nabc",
    )
    entry = LogEntry(timestamp=T0, status=AlertStatus.RESOLVED, issues=(issue,), raw_reading={"ph": 6.8})
    doc = entry_to_record(entry)

    assert doc["status"] == "resolved"
    assert doc["issues"][0] == {
        "parameter": "ph",
        "value": 6.8,
        "resolved": True,
        "resolvedAt": "2026-01-01T10:00:00.000Z",
        "durationMinutes": 7,
        "range": "5.5–7.5",
        "triggeredId": "-Nabc",
    }

    decoded = entry_from_record(doc, "-Nxyz")
    assert decoded.id == "-Nxyz"
    assert decoded.issues == (issue,)
    assert decoded.timestamp == T0
    assert decoded.raw_reading == {"ph": 6.8}


@pytest.mark.parametrize(
    "doc",
    [
        {"status": "alert", "issues": []},
        {"timestamp": "2026-01-01T10:00:00Z", "status": "weird"},
        {"timestamp": "2026-01-01T10:00:00Z", "status": "alert", "issues": [{"value": 1}]},
        {"timestamp": "2026-01-01T10:00:00Z", "status": "alert", "raw": [1, 2]},
        "not a document",
    ],
)
def test_decode_rejects_broken_documents(doc) -> None:
    with pytest.raises(ValueError):
        entry_from_record(doc, "k")
