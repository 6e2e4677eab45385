"""Output encoders for tracks and output-format selection."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from ..aggregation import TrackStatistics, compute_track_statistics
from ..config import DEFAULT_OUTPUT_FORMAT
from ..models import FilterOptions, Track
from .geojson import to_geojson
from .gpx import to_gpx

_log = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    GEOJSON = "GEOJSON"
    GPX = "GPX"


def _default_format() -> OutputFormat:
    try:
        return OutputFormat(DEFAULT_OUTPUT_FORMAT.strip().upper())
    except ValueError:
        return OutputFormat.GEOJSON


def parse_output_format(token: Optional[str]) -> OutputFormat:
    """Resolve an output-format token, falling back to the default format.

    Matching is case-insensitive. Unknown or missing tokens log a warning
    and never raise.
    """

    fallback = _default_format()
    if token is None:
        _log.warning("No output format requested, using %s", fallback.value)
        return fallback
    try:
        return OutputFormat(token.strip().upper())
    except ValueError:
        _log.warning(
            "Could not parse output format '%s', reverting to default value %s",
            token,
            fallback.value,
        )
        return fallback


Renderer = Callable[[Track, TrackStatistics, FilterOptions], str]

_RENDERERS: Dict[OutputFormat, Renderer] = {
    OutputFormat.GEOJSON: lambda track, stats, options: to_geojson(
        track, include_waypoints=options.include_waypoints, stats=stats
    ),
    OutputFormat.GPX: lambda track, stats, options: to_gpx(track, stats=stats),
}


def render_track(
    track: Track,
    output_format: OutputFormat,
    options: Optional[FilterOptions] = None,
) -> str:
    """Encode ``track`` with the encoder registered for ``output_format``.

    Raises:
        InsufficientPointsError: For GPX output of an empty track.
    """

    options = options or FilterOptions.default()
    stats = compute_track_statistics(track)
    return _RENDERERS[output_format](track, stats, options)


__all__ = [
    "OutputFormat",
    "parse_output_format",
    "render_track",
    "to_geojson",
    "to_gpx",
]
