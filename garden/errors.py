"""
Exception types raised inside the aggregator.
"""
from __future__ import annotations

from typing import Optional


class GardenError(Exception):
    """Base class for aggregator errors."""


class ConfigurationError(GardenError):
    """A required configuration key is missing for the requested operation."""


class SourceError(GardenError):
    """An upstream source failed (network error, non-2xx status, unparseable payload)."""

    def __init__(self, source: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status_code = status_code
