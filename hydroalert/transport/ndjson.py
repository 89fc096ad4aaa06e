from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Mapping

from hydroalert.domain.records import to_jsonable

READING_TYPE = "reading"


def iter_json_objects(text: str) -> Iterator[Dict[str, Any]]:
    """
    Yield one or more JSON objects found in a string.

    This function is robust against inputs where multiple JSON objects are
    accidentally concatenated without delimiters, e.g.::

        '{"a": 1}{"b": 2}'

    Only dictionary objects are yielded (non-dict JSON like lists/strings are ignored).

    Raises
    ------
    json.JSONDecodeError
        If the text contains invalid JSON.
    """
    s = text.strip()
    if not s:
        return

    dec = json.JSONDecoder()
    i = 0
    n = len(s)

    while i < n:
        while i < n and s[i].isspace():
            i += 1
        if i >= n:
            break

        obj, end = dec.raw_decode(s, i)
        if isinstance(obj, dict):
            yield obj
        i = end


def decode_reading(line: str) -> Dict[str, Any]:
    """
    Decode an NDJSON line into a reading mapping.

    A message is a flat JSON object of parameter values plus ancillary
    fields, for example::

        {"type": "reading", "timestamp": "2026-01-01T10:00:00Z", "ph": 6.2, "tds": 950}

    The ``type`` field is optional; when present it must be ``"reading"`` and
    it is removed from the result. Values are passed through untouched; the
    alert engine decides which of them are usable.

    If the sender concatenates several JSON objects into one line, the first
    one is decoded.

    Raises
    ------
    ValueError
        If no JSON object is found or the message type is not a reading.
    """
    for obj in iter_json_objects(line):
        t = obj.pop("type", READING_TYPE)
        if t != READING_TYPE:
            raise ValueError(f"Unknown message type: {t}")
        return obj

    raise ValueError("No JSON object found in line")


def encode_reading(reading: Mapping[str, Any]) -> str:
    """
    Encode a reading as one NDJSON line (without the trailing newline).

    Datetime values are written as ISO-8601 UTC strings.
    """
    obj: Dict[str, Any] = {"type": READING_TYPE}
    obj.update(to_jsonable(reading))
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
