from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from hydroalert.domain.models import Threshold

# Parameters shown in the history table, in column order.
HISTORY_COLUMNS = ("ph", "temperature", "tds", "humidity")


@dataclass(frozen=True)
class Settings:
    """
    Built-in defaults used when config.yaml does not override them.
    """

    # Newest log entries kept in the engine's in-process cache
    history_limit: int = 100

    # Rows shown by the history / detailed-issues views
    history_view_rows: int = 10

    def default_thresholds(self) -> Dict[str, Threshold]:
        """
        Returns the safe range for every monitored parameter.
        """
        return {
            "temperature": Threshold(parameter="temperature", min_value=18.0, max_value=35.0, units="°C"),
            "humidity": Threshold(parameter="humidity", min_value=40.0, max_value=80.0, units="%"),
            "ph": Threshold(parameter="ph", min_value=5.5, max_value=7.5, units=""),
            "tds": Threshold(parameter="tds", min_value=800.0, max_value=1600.0, units="ppm"),
        }
