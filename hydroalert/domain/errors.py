"""
Exception hierarchy.

Only `SinkWriteError` is ever surfaced by the alert engine; malformed values
are recovered inside an evaluation and configuration errors are raised at
startup.
"""

from __future__ import annotations


class HydroAlertError(Exception):
    """Base class for all errors raised by this package."""


class MalformedReadingError(HydroAlertError, ValueError):
    """A reading value cannot be interpreted as a finite number."""

    def __init__(self, parameter: str, raw: object):
        super().__init__(f"{parameter}: cannot parse {raw!r} as a number")
        self.parameter = parameter
        self.raw = raw


class SinkWriteError(HydroAlertError):
    """The log sink rejected an append or could not be reached."""


class ConfigError(HydroAlertError, ValueError):
    """Configuration file is missing required fields or holds invalid values."""
