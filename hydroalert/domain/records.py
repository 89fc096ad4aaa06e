"""
Log sink storage format.

Log entries are stored as JSON documents shaped like the historical
``parameter_logs`` records, so existing viewers keep working::

    {
      "timestamp": "2026-01-01T10:00:00.000Z",
      "status": "alert",
      "issues": [{"parameter": "ph", "value": 8.1, "threshold": "5.5–7.5"}],
      "raw": {"ph": 8.1, "temperature": 24.0, ...}
    }

Resolved issues carry ``resolved``, ``resolvedAt``, ``durationMinutes``,
``range`` and ``triggeredId`` instead of ``threshold``.
"""

from __future__ import annotations

from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from hydroalert.domain.clock import iso, parse_timestamp
from hydroalert.domain.models import AlertStatus, IssueDetail, LogEntry, OpenedIssue, ResolvedIssue


def to_jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return iso(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def issue_to_record(issue: IssueDetail) -> Dict[str, Any]:
    if isinstance(issue, ResolvedIssue):
        return {
            "parameter": issue.parameter,
            "value": issue.value,
            "resolved": True,
            "resolvedAt": iso(issue.resolved_at),
            "durationMinutes": issue.duration_minutes,
            "range": issue.range,
            "triggeredId": issue.triggered_id,
        }
    return {
        "parameter": issue.parameter,
        "value": issue.value,
        "threshold": issue.threshold,
    }


def issue_from_record(obj: Mapping[str, Any]) -> IssueDetail:
    if obj.get("resolved") or "triggeredId" in obj:
        return ResolvedIssue(
            parameter=str(obj["parameter"]),
            value=float(obj["value"]),
            resolved_at=parse_timestamp(obj["resolvedAt"]),
            duration_minutes=int(obj["durationMinutes"]),
            range=str(obj.get("range", "")),
            triggered_id=str(obj["triggeredId"]),
        )
    return OpenedIssue(
        parameter=str(obj["parameter"]),
        value=float(obj["value"]),
        threshold=str(obj.get("threshold", "")),
    )


def entry_to_record(entry: LogEntry) -> Dict[str, Any]:
    """
    Convert a log entry into the JSON document written by sinks.

    The sink-assigned ``id`` is not part of the document; stores key
    documents by it instead.
    """
    return {
        "timestamp": iso(entry.timestamp),
        "status": entry.status.value,
        "issues": [issue_to_record(i) for i in entry.issues],
        "raw": to_jsonable(entry.raw_reading),
    }


def entry_from_record(record: Mapping[str, Any], entry_id: str) -> LogEntry:
    """
    Rebuild a log entry from a stored document.

    Raises
    ------
    ValueError
        If the document is missing fields or holds unparseable values.
    """
    try:
        issues: List[IssueDetail] = [issue_from_record(i) for i in record.get("issues") or []]
        raw = record.get("raw") or {}
        if not isinstance(raw, Mapping):
            raise ValueError("'raw' must be an object")
        return LogEntry(
            timestamp=parse_timestamp(record["timestamp"]),
            status=AlertStatus(record["status"]),
            issues=tuple(issues),
            raw_reading=MappingProxyType(dict(raw)),
            id=entry_id,
        )
    except (AttributeError, KeyError, TypeError) as e:
        raise ValueError(f"Invalid log record {entry_id!r}: {e!r}") from e
