"""
Stateless threshold checks.

Nothing here knows about active alerts; these helpers turn one reading into
per-parameter checks and compute the numbers that go into log entries.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, List

from hydroalert.core.config.threshold_table import ThresholdTable
from hydroalert.domain.clock import parse_timestamp
from hydroalert.domain.errors import MalformedReadingError
from hydroalert.domain.models import Reading
from hydroalert.core.alert.alert_base import ParameterCheck

logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "timestamp"


def parse_value(parameter: str, raw: Any) -> float:
    """
    Parse a reading value as a finite float.

    Numbers and numeric strings are accepted. Booleans, None, empty or
    non-numeric strings, NaN and infinities are rejected.

    Raises
    ------
    MalformedReadingError
        If the value cannot be used for threshold comparison.
    """
    if raw is None or isinstance(raw, bool):
        raise MalformedReadingError(parameter, raw)

    try:
        value = float(raw.strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError) as e:
        raise MalformedReadingError(parameter, raw) from e

    if not math.isfinite(value):
        raise MalformedReadingError(parameter, raw)
    return value


def check_reading(table: ThresholdTable, reading: Reading) -> List[ParameterCheck]:
    """
    Check every monitored parameter present in a reading.

    Parameters absent from the table are ignored. Parameters whose value
    cannot be parsed are skipped for this reading only.

    Returns
    -------
    list of ParameterCheck
        One check per usable parameter, in threshold-table order.
    """
    checks: List[ParameterCheck] = []
    for threshold in table:
        if threshold.parameter not in reading:
            continue
        try:
            value = parse_value(threshold.parameter, reading[threshold.parameter])
        except MalformedReadingError as e:
            logger.debug("Skipping malformed value: %s", e)
            continue
        checks.append(
            ParameterCheck(
                parameter=threshold.parameter,
                value=value,
                threshold=threshold,
                out_of_range=not threshold.contains(value),
            )
        )
    return checks


def reading_timestamp(reading: Reading, default: datetime) -> datetime:
    """
    Sensor time of a reading, or ``default`` when it carries none.

    An unparseable timestamp is treated like a missing one.
    """
    raw = reading.get(TIMESTAMP_FIELD)
    if raw is None:
        return default
    try:
        return parse_timestamp(raw)
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable reading timestamp %r", raw)
        return default


def duration_minutes(start: datetime, end: datetime) -> int:
    """
    Whole minutes between two timestamps, rounded half up, never negative.
    """
    minutes = (end - start).total_seconds() / 60.0
    return max(0, math.floor(minutes + 0.5))
