"""Exceptions raised by the analysis engine."""

from __future__ import annotations


class HarCompareError(Exception):
    """Base class for all har-compare errors."""


class HarParseError(HarCompareError, ValueError):
    """A capture could not be parsed into HAR entries."""

    def __init__(self, message: str, file_name: str = "") -> None:
        self.file_name = file_name
        prefix = f"{file_name}: " if file_name else ""
        super().__init__(f"{prefix}{message}")


class ConfigError(HarCompareError):
    """Threshold configuration is unreadable or invalid."""
