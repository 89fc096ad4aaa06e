from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from hydroalert.transport.client_config import HOST, PORT, TIMEOUT_S
from hydroalert.transport.ndjson import decode_reading

logger = logging.getLogger(__name__)


@dataclass
class TCPNDJSONClient:
    """
    TCP client that receives NDJSON readings from a streaming publisher.

    This transport adapter connects to a TCP server and yields:
    - raw NDJSON lines via :meth:`lines`
    - decoded reading mappings via :meth:`readings`

    Notes
    -----
    - This class is an infrastructure component. It does not decide alert
      conditions.
    - Malformed lines are logged and skipped.

    Parameters
    ----------
    host
        Remote host address of the NDJSON stream server.
    port
        Remote TCP port.
    timeout_s
        Connection timeout (seconds) used for initial connect only.
    """

    host: str = HOST
    port: int = PORT
    timeout_s: float = TIMEOUT_S

    _sock: Optional[socket.socket] = None

    def connect(self) -> None:
        """
        Open a TCP connection to the configured host/port.

        After connecting, the timeout is cleared (blocking mode) to support
        continuous streaming.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(self.timeout_s)
        sock.connect((self.host, self.port))
        sock.settimeout(None)
        self._sock = sock
        logger.info("Connected to readings publisher at %s:%d", self.host, self.port)

    def lines(self) -> Iterator[str]:
        """
        Yield complete NDJSON lines from the socket stream.

        Raises
        ------
        RuntimeError
            If called before :meth:`connect`.
        ConnectionError
            If the remote side closes the connection.
        """
        if not self._sock:
            raise RuntimeError("Not connected")

        buf = b""
        while True:
            chunk = self._sock.recv(4096)
            if not chunk:
                raise ConnectionError("Server closed connection")
            buf += chunk

            while b"\n" in buf:
                line, buf = buf.split(b"\n", 1)
                s = line.decode("utf-8", errors="replace").strip()
                if s:
                    yield s

    def readings(self) -> Iterator[Dict[str, Any]]:
        """
        Yield decoded readings from the NDJSON stream, skipping bad lines.
        """
        for line in self.lines():
            try:
                yield decode_reading(line)
            except ValueError:
                logger.warning("Bad line: %r", line[:200])
                continue

    def close(self) -> None:
        """
        Close the underlying socket if open.
        """
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
