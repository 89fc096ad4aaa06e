"""
Unit tests for hydroalert.sink.firebase_sink.FirebaseLogSink.

These tests validate the REST contract with a fake requests session:
- append PUTs the entry document under a client-generated push id
- retries of one append reuse the same key (no duplicate entries)
- auth token, timeout and TLS options are passed through
- transient errors are retried with backoff, then surfaced as SinkWriteError
- list GETs the newest children and decodes them newest first

No real network requests are made.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
import requests

from hydroalert.domain.errors import SinkWriteError
from hydroalert.domain.models import AlertStatus, LogEntry, OpenedIssue
from hydroalert.domain.records import entry_to_record
from hydroalert.sink.firebase_sink import PUSH_CHARS, FirebaseLogSink, FirebaseSinkConfig, PushIdGenerator

T0 = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def _entry(ts: datetime = T0) -> LogEntry:
    return LogEntry(
        timestamp=ts,
        status=AlertStatus.OPEN,
        issues=(OpenedIssue("temperature", 40.0, "18–35"),),
        raw_reading={"temperature": 40},
    )


def _response(body: Any = None, error: Exception | None = None) -> MagicMock:
    r = MagicMock()
    if error is not None:
        r.raise_for_status.side_effect = error
    else:
        r.raise_for_status.return_value = None
    r.json.return_value = body
    return r


@dataclass
class FakeSession:
    """Records calls and replays queued responses (or raises queued exceptions)."""

    responses: List[Any] = field(default_factory=list)
    calls: List[Dict[str, Any]] = field(default_factory=list)

    def _next(self, method: str, url: str, **kwargs: Any) -> Any:
        self.calls.append({"method": method, "url": url, **kwargs})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def put(self, url: str, **kwargs: Any) -> Any:
        return self._next("PUT", url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> Any:
        return self._next("GET", url, **kwargs)


def _sink(session: FakeSession, **overrides: Any) -> FirebaseLogSink:
    options: Dict[str, Any] = {"retry_backoff_s": 0.0}
    options.update(overrides)
    cfg = FirebaseSinkConfig(database_url="https://demo.firebaseio.com/", path="/parameter_logs/", **options)
    return FirebaseLogSink(cfg, session=session, id_factory=lambda: "-Nkey")  # type: ignore[arg-type]


def test_append_puts_document_under_generated_key() -> None:
    session = FakeSession(responses=[_response({})])
    sink = _sink(session, auth_token="SECRET", timeout_s=4.0, verify_tls=False)

    key = sink.append(_entry())

    assert key == "-Nkey"
    call = session.calls[0]
    assert call["method"] == "PUT"
    assert call["url"] == "https://demo.firebaseio.com/parameter_logs/-Nkey.json"
    assert call["json"] == entry_to_record(_entry())
    assert call["params"] == {"auth": "SECRET"}
    assert call["timeout"] == 4.0
    assert call["verify"] is False


def test_append_retry_after_timeout_reuses_key() -> None:
    """
    A timed-out write may already be stored; the retry must overwrite that
    record rather than create a second entry.
    """
    session = FakeSession(responses=[requests.Timeout("read timed out"), _response({})])
    cfg = FirebaseSinkConfig(database_url="https://demo.firebaseio.com", retry_backoff_s=0.0)
    sink = FirebaseLogSink(cfg, session=session)  # type: ignore[arg-type]

    key = sink.append(_entry())

    assert len(session.calls) == 2
    assert {c["url"] for c in session.calls} == {f"https://demo.firebaseio.com/parameter_logs/{key}.json"}
    assert all(c["method"] == "PUT" for c in session.calls)


def test_push_ids_are_chronological_and_unique() -> None:
    now = [1_767_261_600.0]
    gen = PushIdGenerator(clock=lambda: now[0])

    same_ms = [gen() for _ in range(50)]
    now[0] += 1.0
    later = gen()

    ids = same_ms + [later]
    assert all(len(i) == 20 and set(i) <= set(PUSH_CHARS) for i in ids)
    assert len(set(ids)) == len(ids)
    assert ids == sorted(ids)


def test_append_retries_then_succeeds(monkeypatch) -> None:
    sleeps: List[float] = []
    monkeypatch.setattr("hydroalert.sink.firebase_sink.time.sleep", sleeps.append)

    session = FakeSession(
        responses=[
            requests.ConnectionError("reset"),
            _response(error=requests.HTTPError("503")),
            _response({}),
        ]
    )
    sink = _sink(session, retry_count=2, retry_backoff_s=0.5)

    assert sink.append(_entry()) == "-Nkey"
    assert len(session.calls) == 3
    assert sleeps == [0.5, 1.0]


def test_append_raises_sink_write_error_when_retries_exhausted() -> None:
    session = FakeSession(responses=[requests.Timeout("slow"), requests.Timeout("slow")])
    sink = _sink(session, retry_count=1)

    with pytest.raises(SinkWriteError) as exc:
        sink.append(_entry())
    assert isinstance(exc.value.__cause__, requests.Timeout)
    assert len(session.calls) == 2


def test_list_returns_newest_first_and_skips_bad_records() -> None:
    older = entry_to_record(_entry(T0))
    newer = entry_to_record(_entry(T0 + timedelta(minutes=5)))
    session = FakeSession(responses=[_response({"-Na": older, "-Nb": newer, "-Nbad": {"status": "alert"}})])
    sink = _sink(session)

    entries = sink.list(10)

    assert [e.id for e in entries] == ["-Nb", "-Na"]
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["params"] == {"orderBy": '"$key"', "limitToLast": 10}


def test_list_empty_node() -> None:
    session = FakeSession(responses=[_response(None)])
    assert _sink(session).list(5) == []
    assert _sink(FakeSession()).list(0) == []
