"""
Unit tests for hydroalert.core.config.threshold_table.ThresholdTable.

Validates:
- load() indexes thresholds by parameter, last definition wins
- bounds() returns None for parameters that are not monitored
- iteration order follows load order
- inverted ranges are rejected
"""

from __future__ import annotations

import pytest

from hydroalert.core.config.threshold_table import ThresholdTable
from hydroalert.domain.errors import ConfigError
from hydroalert.domain.models import Threshold


def test_load_and_bounds() -> None:
    table = ThresholdTable.load([Threshold("ph", 5.5, 7.5), Threshold("tds", 800, 1600, units="ppm")])

    got = table.bounds("tds")
    assert got is not None
    assert (got.min_value, got.max_value, got.units) == (800, 1600, "ppm")
    assert table.bounds("salinity") is None
    assert "ph" in table and "salinity" not in table
    assert len(table) == 2


def test_last_definition_wins_and_order_is_kept() -> None:
    table = ThresholdTable.load(
        [Threshold("temperature", 18, 35), Threshold("ph", 5.5, 7.5), Threshold("temperature", 20, 30)]
    )
    assert table.parameters() == ["temperature", "ph"]
    assert table.bounds("temperature") == Threshold("temperature", 20, 30)
    assert [t.parameter for t in table] == ["temperature", "ph"]


def test_inverted_range_is_rejected() -> None:
    with pytest.raises(ConfigError):
        ThresholdTable.load([Threshold("ph", 8.0, 6.0)])


def test_empty_table() -> None:
    table = ThresholdTable()
    assert list(table) == [] and table.parameters() == []
    assert table.bounds("ph") is None
