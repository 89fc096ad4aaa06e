"""
Unit tests for hydroalert.transport.tcp_client.TCPNDJSONClient.

These tests validate transport behavior without performing real network I/O:
- connect() uses socket.socket with correct settings
- lines() yields complete lines from streamed chunks
- lines() handles empty payload (server close) as ConnectionError
- readings() decodes valid lines and skips malformed lines

Approach
--------
We use a lightweight fake socket and monkeypatch socket.socket to return it.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass, field
from typing import Any, List, Tuple, cast

import pytest

from hydroalert.transport.tcp_client import TCPNDJSONClient


@dataclass
class FakeSocket:
    """
    Simple fake socket for deterministic recv behavior.

    When chunks are exhausted, recv() returns b"" to simulate server close.
    """

    recv_chunks: List[bytes]
    connected_to: Tuple[str, int] | None = None
    timeout_history: List[Any] = field(default_factory=list)
    closed: bool = False

    def settimeout(self, value) -> None:
        self.timeout_history.append(value)

    def connect(self, addr: Tuple[str, int]) -> None:
        self.connected_to = addr

    def recv(self, n: int) -> bytes:
        if self.recv_chunks:
            return self.recv_chunks.pop(0)
        return b""

    def close(self) -> None:
        self.closed = True


def test_connect_uses_timeout_then_streaming_mode(monkeypatch) -> None:
    fake = FakeSocket(recv_chunks=[])
    monkeypatch.setattr("socket.socket", lambda *args, **kwargs: fake)

    client = TCPNDJSONClient(host="10.0.0.1", port=1234, timeout_s=2.5)
    client.connect()

    assert fake.connected_to == ("10.0.0.1", 1234)
    assert fake.timeout_history == [2.5, None]

    client.close()
    assert fake.closed
    assert client._sock is None


def test_lines_yields_complete_lines_from_chunks() -> None:
    fake = FakeSocket(recv_chunks=[b'{"ph":6}\n{"tds":', b'900}\n\n   \n{"ph":7}\n'])

    client = TCPNDJSONClient()
    client._sock = cast(socket.socket, fake)

    it = client.lines()
    assert next(it) == '{"ph":6}'
    assert next(it) == '{"tds":900}'
    assert next(it) == '{"ph":7}'

    with pytest.raises(ConnectionError):
        next(it)


def test_lines_raises_runtime_error_if_not_connected() -> None:
    with pytest.raises(RuntimeError):
        next(TCPNDJSONClient().lines())


def test_readings_decodes_valid_and_skips_invalid(monkeypatch) -> None:
    client = TCPNDJSONClient()

    def fake_lines():
        yield '{"type":"reading","ph":6.0}'
        yield "NOT JSON"
        yield '{"type":"heartbeat"}'
        yield '{"ph":"7.1","humidity":55}'

    monkeypatch.setattr(client, "lines", fake_lines)

    assert list(client.readings()) == [{"ph": 6.0}, {"ph": "7.1", "humidity": 55}]
