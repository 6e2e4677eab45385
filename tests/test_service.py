"""Tests for the track export service."""

from __future__ import annotations

from datetime import timedelta
import json
import logging
import random

import pytest

from conftest import BASE_TIME, make_measurement
from track_explorer.errors import (
    InsufficientPointsError,
    MeasurementFormatError,
    TrackExplorerError,
)
from track_explorer.formatters import OutputFormat
from track_explorer.measurements import InMemoryMeasurementProvider
from track_explorer.models import FilterOptions, LocationMeasurement, MeasurementQuery
from track_explorer.service import (
    ExportResult,
    TrackService,
    TrackServiceConfig,
    map_measurement,
    map_measurements,
)

NO_FILTERS = FilterOptions(path_optimizer_enabled=False, gps_jump_filter_enabled=False)


def _spike_records():
    return [
        make_measurement(0.0, -0.001, 0),
        make_measurement(0.0, 0.0, 10),
        make_measurement(0.0, 10.0, 20, device="dev-2"),
        make_measurement(0.0, 0.001, 30),
    ]


def test_map_measurement_applies_defaults() -> None:
    record = LocationMeasurement(unit_id="unit-1", device_id="dev-1", timestamp=BASE_TIME)
    point = map_measurement(record)
    assert point.latitude == 0.0
    assert point.longitude == 0.0
    assert point.speed == 0.0
    assert point.heading == 0.0
    assert point.altitude is None
    assert point.accuracy is None
    assert point.collector_id == "dev-1"


def test_map_measurement_keeps_values(sample_measurements) -> None:
    point = map_measurement(sample_measurements[0])
    assert point.latitude == 51.5
    assert point.altitude == 12.0
    assert point.accuracy == 4.0
    assert point.speed == 1.2
    assert point.heading == 90.0


@pytest.mark.parametrize(
    "record",
    [
        LocationMeasurement(unit_id="unit-1", device_id="dev-1", timestamp=None),  # type: ignore[arg-type]
        LocationMeasurement(unit_id="", device_id="dev-1", timestamp=BASE_TIME),
        LocationMeasurement(unit_id="unit-1", device_id="", timestamp=BASE_TIME),
    ],
)
def test_map_measurement_rejects_incomplete_records(record) -> None:
    with pytest.raises(MeasurementFormatError):
        map_measurement(record)


def test_parallel_mapping_matches_sequential() -> None:
    rng = random.Random(7)
    records = [
        make_measurement(
            rng.uniform(-1, 1),
            rng.uniform(-1, 1),
            rng.randint(0, 500),
            device=f"dev-{i % 3}",
        )
        for i in range(2000)
    ]
    sequential = map_measurements(records, max_workers=1)
    parallel = map_measurements(records, max_workers=4, parallel_threshold=10)
    assert parallel == sequential
    assert [p.timestamp for p in parallel] == sorted(p.timestamp for p in parallel)


def test_mapping_keeps_input_order_for_equal_timestamps() -> None:
    records = [
        make_measurement(1.0, 1.0, 0, device="b"),
        make_measurement(2.0, 2.0, 0, device="a"),
        make_measurement(0.0, 0.0, -5, device="c"),
    ]
    points = map_measurements(records, max_workers=1)
    assert [p.collector_id for p in points] == ["c", "b", "a"]


def test_service_rejects_non_positive_workers() -> None:
    with pytest.raises(ValueError):
        TrackService(TrackServiceConfig(max_workers=0))


def test_build_track_filters_jumps_but_keeps_devices() -> None:
    options = FilterOptions(path_optimizer_enabled=False, gps_jump_filter_enabled=True)
    track = TrackService().build_track("unit-1", _spike_records(), options)
    assert len(track) == 3
    assert all(p.longitude != 10.0 for p in track.points)
    assert track.device_ids == ("dev-1", "dev-2")


def test_build_track_without_filters_keeps_everything() -> None:
    track = TrackService().build_track("unit-1", _spike_records(), NO_FILTERS)
    assert len(track) == 4


def test_build_track_simplifies_straight_line() -> None:
    records = [make_measurement(0.0, 0.001 * i, i * 10) for i in range(10)]
    options = FilterOptions(path_optimizer_enabled=True, gps_jump_filter_enabled=True)
    track = TrackService().build_track("unit-1", records, options)
    assert len(track) == 2
    assert track.points[0].longitude == 0.0
    assert track.points[-1].longitude == pytest.approx(0.009)


def test_export_geojson(sample_measurements) -> None:
    result = TrackService().export("unit-1", sample_measurements, "geojson", NO_FILTERS)
    assert isinstance(result, ExportResult)
    assert result.ok
    assert result.format is OutputFormat.GEOJSON
    assert result.point_count == 4
    props = json.loads(result.unwrap())["features"][0]["properties"]
    assert props["pointCount"] == 4
    assert props["trackedDevices"] == ["dev-1", "dev-2"]
    assert props["duration"] == "1 minutes"


def test_export_unknown_format_falls_back(sample_measurements, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        result = TrackService().export("unit-1", sample_measurements, "KML", NO_FILTERS)
    assert result.format is OutputFormat.GEOJSON
    assert result.ok
    assert "KML" in caplog.text


def test_export_empty_gpx_returns_error() -> None:
    result = TrackService().export("unit-1", [], OutputFormat.GPX, NO_FILTERS)
    assert not result.ok
    assert result.content is None
    assert isinstance(result.error, InsufficientPointsError)
    with pytest.raises(InsufficientPointsError):
        result.unwrap()


def test_export_empty_geojson_succeeds() -> None:
    result = TrackService().export("unit-1", [], OutputFormat.GEOJSON, NO_FILTERS)
    assert result.ok
    assert json.loads(result.unwrap())["features"][0]["properties"]["pointCount"] == 0


def test_export_query_uses_provider(sample_measurements) -> None:
    others = [make_measurement(10.0, 10.0, 5, unit="unit-2")]
    provider = InMemoryMeasurementProvider(sample_measurements + others)
    service = TrackService(TrackServiceConfig(provider=provider))
    query = MeasurementQuery(
        unit_id="unit-1",
        start=BASE_TIME - timedelta(seconds=1),
        end=BASE_TIME + timedelta(seconds=61),
    )
    result = service.export_query(query, OutputFormat.GPX, NO_FILTERS)
    assert result.ok
    assert result.point_count == 3
    assert "GPX traces of unit-1" in result.unwrap()


def test_export_query_requires_provider() -> None:
    query = MeasurementQuery(unit_id="unit-1", start=BASE_TIME, end=BASE_TIME)
    with pytest.raises(ValueError):
        TrackService().export_query(query)


def test_build_track_with_parked_device_terminates() -> None:
    records = [
        make_measurement(0.0, 0.0, 0),
        make_measurement(0.0, 0.000001, 10),
        make_measurement(0.0, 0.00005, 20),
    ]
    track = TrackService().build_track("unit-1", records, FilterOptions())
    assert len(track) == 2
    assert track.points[0].longitude == 0.0
    assert track.points[-1].longitude == 0.00005


def test_geojson_positions_always_have_altitude() -> None:
    result = TrackService().export(
        "unit-1", [make_measurement(1.0, 2.0, 0)], OutputFormat.GEOJSON, NO_FILTERS
    )
    line = json.loads(result.unwrap())["features"][0]
    assert line["geometry"]["coordinates"] == [[2.0, 1.0, 0.0]]


def test_unwrap_without_content_raises() -> None:
    result = ExportResult(OutputFormat.GEOJSON, None, 0)
    with pytest.raises(TrackExplorerError):
        result.unwrap()
