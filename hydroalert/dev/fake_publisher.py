from __future__ import annotations

import argparse
import logging
import random
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from hydroalert.domain.clock import utc_now
from hydroalert.transport.client_config import HOST, PORT
from hydroalert.transport.ndjson import encode_reading

logger = logging.getLogger(__name__)

# name -> (baseline, noise sigma, excursion value)
_CHANNELS = {
    "ph": (6.5, 0.05, 8.2),
    "temperature": (26.0, 0.2, 38.0),
    "tds": (1200.0, 15.0, 650.0),
    "humidity": (60.0, 0.8, 88.0),
}


@dataclass
class ReadingGenerator:
    """
    Synthetic hydroponic readings with occasional out-of-range excursions.

    Each channel random-walks around its baseline. With probability
    ``excursion_prob`` per reading one channel jumps to its excursion value
    and decays back towards the baseline over the following readings.
    """

    seed: int = 123
    excursion_prob: float = 0.05
    decay: float = 0.15

    _rng: random.Random = field(init=False, repr=False)
    _values: Dict[str, float] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)
        self._values = {name: base for name, (base, _, _) in _CHANNELS.items()}

    def next(self) -> Dict[str, Any]:
        if self._rng.random() < self.excursion_prob:
            name = self._rng.choice(list(_CHANNELS))
            self._values[name] = _CHANNELS[name][2]

        reading: Dict[str, Any] = {"timestamp": utc_now()}
        for name, (base, sigma, _) in _CHANNELS.items():
            v = self._values[name]
            v += (base - v) * self.decay
            v += self._rng.gauss(0.0, sigma)
            self._values[name] = v
            reading[name] = round(v, 2)
        return reading


@dataclass
class TCPPublishServer:
    """
    Single-client TCP server that publishes readings as NDJSON.

    If a new client connects, any previous client is closed and replaced.
    Access to the client socket is guarded by a lock so accept/send/close can
    run on different threads.
    """

    host: str = HOST
    port: int = PORT

    _server_sock: Optional[socket.socket] = None
    _client_sock: Optional[socket.socket] = None
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def start(self) -> None:
        self._server_sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server_sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server_sock.bind((self.host, self.port))
        self._server_sock.listen(1)
        logger.info("Publisher listening on %s:%d", self.host, self.port)

    def accept_one(self) -> None:
        if not self._server_sock:
            raise RuntimeError("Server not started")

        client, addr = self._server_sock.accept()
        with self._lock:
            if self._client_sock:
                self._client_sock.close()
            self._client_sock = client
        logger.info("Client connected from %s", addr)

    def send(self, reading: Dict[str, Any]) -> None:
        data = (encode_reading(reading) + "\n").encode("utf-8")

        with self._lock:
            sock = self._client_sock
        if not sock:
            return

        try:
            sock.sendall(data)
        except OSError:
            with self._lock:
                sock.close()
                if self._client_sock is sock:
                    self._client_sock = None
            logger.info("Client disconnected")

    def close(self) -> None:
        with self._lock:
            for s in (self._client_sock, self._server_sock):
                if s:
                    s.close()
            self._client_sock = None
            self._server_sock = None


def main(argv: Optional[List[str]] = None) -> None:
    p = argparse.ArgumentParser(description="Publish synthetic hydroponic readings over TCP NDJSON")
    p.add_argument("--host", default=HOST)
    p.add_argument("--port", type=int, default=PORT)
    p.add_argument("--hz", type=float, default=1.0)
    p.add_argument("--seed", type=int, default=123)
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    server = TCPPublishServer(host=args.host, port=args.port)
    server.start()
    threading.Thread(target=lambda: _accept_forever(server), name="publisher-accept", daemon=True).start()

    gen = ReadingGenerator(seed=args.seed)
    period = 1.0 / max(args.hz, 1e-6)
    try:
        while True:
            server.send(gen.next())
            time.sleep(period)
    except KeyboardInterrupt:
        pass
    finally:
        server.close()


def _accept_forever(server: TCPPublishServer) -> None:
    while True:
        try:
            server.accept_one()
        except OSError:
            return


if __name__ == "__main__":
    main()
