from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from hydroalert.domain.errors import ConfigError
from hydroalert.domain.models import Threshold


@dataclass(frozen=True)
class ThresholdTable:
    """
    Static mapping from parameter name to its safe range.

    The table is built once at startup and never mutated afterwards, so it can
    be shared freely between threads. Parameters that are not in the table
    are never evaluated.

    Notes
    -----
    - Iteration order is load order; the engine evaluates parameters (and
      therefore lists issues) in this order.
    - Loading the same parameter twice keeps the last definition.

    Attributes
    ----------
    _thresholds
        Internal mapping of parameter name to Threshold.
    """

    _thresholds: Mapping[str, Threshold] = field(default_factory=dict)

    @classmethod
    def load(cls, thresholds: Iterable[Threshold]) -> "ThresholdTable":
        """
        Build a table from threshold definitions.

        Raises
        ------
        ConfigError
            If a threshold has ``min_value > max_value``.
        """
        table: Dict[str, Threshold] = {}
        for t in thresholds:
            if t.min_value > t.max_value:
                raise ConfigError(
                    f"Threshold for {t.parameter!r} has min {t.min_value} greater than max {t.max_value}"
                )
            table[t.parameter] = t
        return cls(table)

    def bounds(self, parameter: str) -> Optional[Threshold]:
        """
        Retrieve the safe range for a parameter.

        Returns
        -------
        Threshold or None
            The configured range, or None if the parameter is not monitored.
        """
        return self._thresholds.get(parameter)

    def parameters(self) -> List[str]:
        return list(self._thresholds)

    def __iter__(self) -> Iterator[Threshold]:
        return iter(list(self._thresholds.values()))

    def __len__(self) -> int:
        return len(self._thresholds)

    def __contains__(self, parameter: object) -> bool:
        return parameter in self._thresholds
