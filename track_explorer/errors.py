"""Central error types used across the application."""

from __future__ import annotations


class TrackExplorerError(RuntimeError):
    """Base error for track processing failures."""


class InsufficientPointsError(TrackExplorerError):
    """Raised when an export needs at least one point but the track is empty."""

    def __init__(self, message: str = "Not enough points to process request"):
        super().__init__(message)


class MeasurementFormatError(TrackExplorerError):
    """Raised when raw measurement records or input files are malformed."""


__all__ = [
    "TrackExplorerError",
    "InsufficientPointsError",
    "MeasurementFormatError",
]
