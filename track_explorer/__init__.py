"""Track explorer package: GPS track simplification and export."""

from .main import main
from .models import FilterOptions, GeoPoint, LocationMeasurement, Track
from .errors import InsufficientPointsError, MeasurementFormatError, TrackExplorerError
from .formatters import OutputFormat
from .service import ExportResult, TrackService

__all__ = [
    "main",
    "FilterOptions",
    "GeoPoint",
    "LocationMeasurement",
    "Track",
    "InsufficientPointsError",
    "MeasurementFormatError",
    "TrackExplorerError",
    "OutputFormat",
    "ExportResult",
    "TrackService",
]
