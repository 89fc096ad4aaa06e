from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

from hydroalert.domain.errors import SinkWriteError
from hydroalert.domain.models import LogEntry
from hydroalert.domain.records import entry_from_record, entry_to_record

logger = logging.getLogger(__name__)

# Firebase push-id alphabet, in ASCII order so keys sort chronologically.
PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"


class PushIdGenerator:
    """
    Client-side generator of Firebase-style push ids.

    An id is 8 characters of millisecond timestamp followed by 12 random
    characters. Ids generated within the same millisecond increment the
    random part, so ids from one generator are strictly increasing.
    """

    def __init__(self, clock: Callable[[], float] = time.time, rng: Optional[random.Random] = None):
        self._clock = clock
        self._rng = rng or random.SystemRandom()
        self._lock = threading.Lock()
        self._last_ms = -1
        self._last_rand = [0] * 12

    def __call__(self) -> str:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            if now_ms == self._last_ms:
                # Same millisecond: bump the random suffix by one.
                i = 11
                while i >= 0 and self._last_rand[i] == 63:
                    self._last_rand[i] = 0
                    i -= 1
                if i >= 0:
                    self._last_rand[i] += 1
            else:
                self._last_ms = now_ms
                self._last_rand = [self._rng.randrange(64) for _ in range(12)]

            ts_chars = []
            t = now_ms
            for _ in range(8):
                ts_chars.append(PUSH_CHARS[t % 64])
                t //= 64
            return "".join(reversed(ts_chars)) + "".join(PUSH_CHARS[r] for r in self._last_rand)


@dataclass(frozen=True)
class FirebaseSinkConfig:
    """
    Configuration for the Firebase Realtime Database log sink.

    Parameters
    ----------
    database_url
        Database root, e.g. ``https://<project>.firebaseio.com``.
    path
        Node that holds the log (one child per entry).
    auth_token
        Optional database secret / ID token sent as the ``auth`` query parameter.
    timeout_s
        HTTP request timeout in seconds.
    verify_tls
        Whether to verify TLS certificates.
    retry_count
        Extra attempts after a failed append.
    retry_backoff_s
        Base delay for exponential backoff between attempts.
    """

    database_url: str
    path: str = "parameter_logs"
    auth_token: Optional[str] = None
    timeout_s: float = 3.0
    verify_tls: bool = True
    retry_count: int = 2
    retry_backoff_s: float = 0.5


class FirebaseLogSink:
    """
    Log sink backed by the Firebase Realtime Database REST API.

    - ``append`` generates a push id on the client and PUTs the entry
      document to ``<path>/<id>.json``. Every retry of one append writes the
      same key, so a write that reached the server before a timeout is
      overwritten rather than duplicated.
    - ``list`` GETs the last ``limit`` children ordered by key. Push ids are
      chronological, so this is the newest ``limit`` entries.

    Notes
    -----
    - This class performs side effects (network I/O).
    - Retries with exponential backoff are applied to appends only.
    """

    def __init__(
        self,
        cfg: FirebaseSinkConfig,
        session: Optional[requests.Session] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Parameters
        ----------
        cfg
            Sink configuration.
        session
            Optional requests session (shared connection pool, test doubles).
        id_factory
            Optional key generator; defaults to a :class:`PushIdGenerator`.
        """
        self._cfg = cfg
        self._session = session or requests.Session()
        self._new_id = id_factory or PushIdGenerator()

    @property
    def url(self) -> str:
        return f"{self._cfg.database_url.rstrip('/')}/{self._cfg.path.strip('/')}.json"

    def child_url(self, key: str) -> str:
        return f"{self._cfg.database_url.rstrip('/')}/{self._cfg.path.strip('/')}/{key}.json"

    def _params(self) -> Dict[str, Any]:
        if self._cfg.auth_token:
            return {"auth": self._cfg.auth_token}
        return {}

    def append(self, entry: LogEntry) -> str:
        """
        Store an entry under a new push id and return the id.

        Raises
        ------
        SinkWriteError
            If every attempt failed.
        """
        record = entry_to_record(entry)
        key = self._new_id()
        url = self.child_url(key)
        last_error: Optional[Exception] = None

        for attempt in range(self._cfg.retry_count + 1):
            try:
                r = self._session.put(
                    url,
                    json=record,
                    params=self._params(),
                    timeout=self._cfg.timeout_s,
                    verify=self._cfg.verify_tls,
                )
                r.raise_for_status()
            except requests.RequestException as e:
                last_error = e
                logger.warning(
                    "Firebase append of %s attempt %d/%d failed: %r",
                    key,
                    attempt + 1,
                    self._cfg.retry_count + 1,
                    e,
                )
                if attempt < self._cfg.retry_count:
                    time.sleep(self._cfg.retry_backoff_s * (2 ** attempt))
                continue

            return key

        raise SinkWriteError(
            f"Firebase append to {self._cfg.path!r} failed after {self._cfg.retry_count + 1} attempts"
        ) from last_error

    def list(self, limit: int) -> List[LogEntry]:
        """
        Return up to ``limit`` stored entries, newest first.

        Records that cannot be decoded are skipped.

        Raises
        ------
        requests.RequestException
            For network-related or HTTP errors.
        """
        if limit <= 0:
            return []

        params = dict(self._params())
        params.update({"orderBy": '"$key"', "limitToLast": int(limit)})

        r = self._session.get(
            self.url,
            params=params,
            timeout=self._cfg.timeout_s,
            verify=self._cfg.verify_tls,
        )
        r.raise_for_status()
        data = r.json() or {}

        entries: List[LogEntry] = []
        for key, record in data.items():
            try:
                entries.append(entry_from_record(record, str(key)))
            except ValueError as e:
                logger.warning("Skipping unreadable log record %s: %s", key, e)

        entries.sort(key=lambda e: (e.timestamp, e.id or ""), reverse=True)
        return entries[:limit]
