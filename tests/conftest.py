"""Global pytest fixtures & helpers.

Adds project root to path and provides factory helpers for points,
measurements and tracks so test modules do not rebuild them by hand.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from track_explorer.models import GeoPoint, LocationMeasurement, Track

BASE_TIME = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


# --- Factory helpers -------------------------------------------------
def make_point(
    lat,
    lon,
    seconds=0,
    *,
    alt=None,
    speed=0.0,
    heading=0.0,
    accuracy=None,
    collector="dev-1",
    unit="unit-1",
):
    return GeoPoint(
        unit_id=unit,
        collector_id=collector,
        timestamp=BASE_TIME + timedelta(seconds=seconds),
        latitude=lat,
        longitude=lon,
        altitude=alt,
        speed=speed,
        heading=heading,
        accuracy=accuracy,
    )


def make_points(coords, step_s=10, **kwargs):
    """Build points from ``(lat, lon)`` pairs spaced ``step_s`` seconds apart."""
    return [
        make_point(lat, lon, index * step_s, **kwargs)
        for index, (lat, lon) in enumerate(coords)
    ]


def make_track(coords, subject="unit-1", step_s=10, **kwargs):
    return Track.from_points(subject, make_points(coords, step_s, **kwargs))


def make_measurement(
    lat,
    lon,
    seconds=0,
    *,
    unit="unit-1",
    device="dev-1",
    mission=None,
    alt=None,
    accuracy=None,
    heading=None,
    speed=None,
):
    return LocationMeasurement(
        unit_id=unit,
        device_id=device,
        timestamp=BASE_TIME + timedelta(seconds=seconds),
        mission_id=mission,
        latitude=lat,
        longitude=lon,
        altitude=alt,
        accuracy_m=accuracy,
        heading=heading,
        speed=speed,
    )


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def straight_line_points():
    """Five points walking east along the equator, 10 seconds apart."""
    return make_points([(0.0, float(lon)) for lon in range(5)])


@pytest.fixture
def spike_points():
    """Four points where the third jumps ten degrees away and back."""
    return [
        make_point(0.0, -0.001, 0),
        make_point(0.0, 0.0, 10),
        make_point(0.0, 10.0, 20, collector="dev-2"),
        make_point(0.0, 0.001, 30),
    ]


@pytest.fixture
def sample_measurements():
    return [
        make_measurement(51.5000, -0.1200, 0, alt=12.0, accuracy=4.0, speed=1.2, heading=90.0),
        make_measurement(51.5005, -0.1190, 30, alt=13.0, accuracy=6.0, speed=1.4, heading=80.0),
        make_measurement(51.5010, -0.1180, 60, alt=14.0, speed=1.6, heading=70.0, device="dev-2"),
        make_measurement(51.5015, -0.1170, 90, alt=15.0, accuracy=5.0, speed=1.3, heading=60.0),
    ]
