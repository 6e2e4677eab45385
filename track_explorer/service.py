"""Track export service (application layer).

Maps raw measurements to points, runs the filtering pipeline and encodes the
resulting track. Measurement storage is an external collaborator reached
through the ``MeasurementProvider`` callable in ``TrackServiceConfig``.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import time
from typing import Callable, List, Optional, Sequence

from .config import MAPPING_MAX_WORKERS, MAPPING_PARALLEL_THRESHOLD
from .errors import MeasurementFormatError, TrackExplorerError
from .formatters import OutputFormat, parse_output_format, render_track
from .jump_filter import GpsJumpFilter
from .models import (
    FilterOptions,
    GeoPoint,
    LocationMeasurement,
    MeasurementQuery,
    Track,
    distinct_collector_ids,
)
from .simplify import PathSimplifier

MeasurementProvider = Callable[[MeasurementQuery], Sequence[LocationMeasurement]]


def _or_zero(value: Optional[float]) -> float:
    return 0.0 if value is None else float(value)


def _or_none(value: Optional[float]) -> Optional[float]:
    return None if value is None else float(value)


def map_measurement(record: LocationMeasurement) -> GeoPoint:
    """Convert a raw measurement into a ``GeoPoint``.

    Missing coordinates, speed and heading become 0.0; altitude and accuracy
    stay None.
    """

    if record.timestamp is None:
        raise MeasurementFormatError(
            f"Measurement for unit '{record.unit_id}' has no timestamp"
        )
    if not record.unit_id or not record.device_id:
        raise MeasurementFormatError(
            f"Measurement at {record.timestamp} is missing its unit or device id"
        )
    return GeoPoint(
        unit_id=str(record.unit_id),
        collector_id=str(record.device_id),
        timestamp=record.timestamp,
        latitude=_or_zero(record.latitude),
        longitude=_or_zero(record.longitude),
        altitude=_or_none(record.altitude),
        speed=_or_zero(record.speed),
        heading=_or_zero(record.heading),
        accuracy=_or_none(record.accuracy_m),
    )


def map_measurements(
    records: Sequence[LocationMeasurement],
    max_workers: int = MAPPING_MAX_WORKERS,
    parallel_threshold: int = MAPPING_PARALLEL_THRESHOLD,
) -> List[GeoPoint]:
    """Map ``records`` to points sorted by timestamp.

    Large batches are mapped on a thread pool. Sorting afterwards is stable
    over the input order, so the result never depends on the worker count.
    """

    if max_workers > 1 and len(records) > parallel_threshold:
        chunk = max(1, len(records) // (max_workers * 4))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            points = list(executor.map(map_measurement, records, chunksize=chunk))
    else:
        points = [map_measurement(record) for record in records]
    return sorted(points)


@dataclass(slots=True)
class ExportResult:
    """Outcome of an export; ``error`` is set instead of ``content`` on failure."""

    format: OutputFormat
    content: Optional[str]
    point_count: int
    error: Optional[TrackExplorerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        if self.content is None:
            raise TrackExplorerError(f"{self.format.value} export produced no content")
        return self.content


@dataclass(slots=True)
class TrackServiceConfig:
    provider: Optional[MeasurementProvider] = None
    max_workers: int = MAPPING_MAX_WORKERS
    parallel_threshold: int = MAPPING_PARALLEL_THRESHOLD
    logger: logging.Logger | None = None


class TrackService:
    def __init__(self, config: TrackServiceConfig | None = None):
        self.config = config or TrackServiceConfig()
        if self.config.max_workers <= 0:
            raise ValueError("max_workers must be positive")
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)

    def build_track(
        self,
        subject_id: str,
        records: Sequence[LocationMeasurement],
        options: FilterOptions | None = None,
    ) -> Track:
        """Map, sort, filter and simplify ``records`` into a ``Track``."""

        options = options or FilterOptions.default()
        started = time.perf_counter()
        points = map_measurements(
            records,
            max_workers=self.config.max_workers,
            parallel_threshold=self.config.parallel_threshold,
        )
        device_ids = distinct_collector_ids(points)
        self._log.info(
            "Loaded %d recorded GPS locations from %d tracking device(s) %s for '%s' in %.1f ms",
            len(points),
            len(device_ids),
            list(device_ids),
            subject_id,
            (time.perf_counter() - started) * 1000.0,
        )
        if options.gps_jump_filter_enabled:
            points = GpsJumpFilter().apply(points)
        if options.path_optimizer_enabled:
            points = PathSimplifier(options.optimization_coefficient).apply(points)
        return Track.from_points(subject_id, points, device_ids=device_ids)

    def render(
        self,
        track: Track,
        output_format: OutputFormat,
        options: FilterOptions | None = None,
    ) -> ExportResult:
        """Encode ``track``; export failures are returned on the result."""

        started = time.perf_counter()
        self._log.info("Start %s transformation...", output_format.value)
        try:
            content = render_track(track, output_format, options)
        except TrackExplorerError as exc:
            self._log.warning(
                "%s export failed for '%s': %s", output_format.value, track.subject_id, exc
            )
            return ExportResult(output_format, None, len(track), error=exc)
        self._log.info(
            "Processed %d location points to %s format in %.1f ms",
            len(track),
            output_format.value,
            (time.perf_counter() - started) * 1000.0,
        )
        return ExportResult(output_format, content, len(track))

    def export(
        self,
        subject_id: str,
        records: Sequence[LocationMeasurement],
        output_format: str | OutputFormat | None = None,
        options: FilterOptions | None = None,
    ) -> ExportResult:
        """Run the full pipeline for ``records`` and encode the track."""

        options = options or FilterOptions.default()
        if isinstance(output_format, OutputFormat):
            fmt = output_format
        else:
            fmt = parse_output_format(output_format)
        track = self.build_track(subject_id, records, options)
        return self.render(track, fmt, options)

    def export_query(
        self,
        query: MeasurementQuery,
        output_format: str | OutputFormat | None = None,
        options: FilterOptions | None = None,
    ) -> ExportResult:
        """Fetch measurements for ``query`` from the provider and export them."""

        if self.config.provider is None:
            raise ValueError("TrackService has no measurement provider configured")
        self._log.info(
            "Request all locations from %s to %s for unit '%s' in mission '%s'",
            query.start,
            query.end,
            query.unit_id,
            query.mission_id,
        )
        records = self.config.provider(query)
        return self.export(query.unit_id, records, output_format, options)


__all__ = [
    "ExportResult",
    "MeasurementProvider",
    "TrackService",
    "TrackServiceConfig",
    "map_measurement",
    "map_measurements",
]
