"""
Default TCP settings for the readings transport.

Attributes
----------
HOST
    Default address of the readings publisher.
PORT
    Default TCP port of the readings publisher.
TIMEOUT_S
    Default connection timeout (seconds) for TCP clients.
"""

from __future__ import annotations

HOST: str = "127.0.0.1"
PORT: int = 9009
TIMEOUT_S: float = 5.0
