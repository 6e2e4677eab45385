"""Geometry helpers for latitude/longitude points.

Two families of distances live here. ``haversine_distance_m`` returns real
metres on a spherical Earth. ``planar_distance`` and ``orthogonal_distance``
treat (lat, lon) as a pseudo-Euclidean plane and are only meaningful as
relative measures (e.g. path simplification tolerances).
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .config import COORDINATE_EPSILON, EARTH_RADIUS_KM
from .models import Localizable

FloatArray = NDArray[np.float64]

KILOMETERS = "K"
NAUTICAL_MILES = "M"


def tolerant_equals(x: float, y: float, epsilon: float = COORDINATE_EPSILON) -> bool:
    """Return True when ``x`` and ``y`` differ by less than ``epsilon``."""

    return x == y or abs(x - y) < epsilon


def points_equal(a: Localizable, b: Localizable) -> bool:
    """Return True when both coordinates of ``a`` and ``b`` are tolerantly equal."""

    return tolerant_equals(a.latitude, b.latitude) and tolerant_equals(
        a.longitude, b.longitude
    )


def points_on_same_latitude(
    a: Optional[Localizable], b: Optional[Localizable]
) -> bool:
    return a is not None and b is not None and tolerant_equals(a.latitude, b.latitude)


def _haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat_distance = math.radians(lat2 - lat1)
    lon_distance = math.radians(lon2 - lon1)
    a = math.sin(lat_distance / 2) ** 2 + (
        math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(lon_distance / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c * 1000.0


def haversine_distance_m(a: Optional[Localizable], b: Optional[Localizable]) -> float:
    """Great-circle distance in metres between ``a`` and ``b``.

    When both points carry an altitude the altitude difference is combined
    with the surface distance (``sqrt(d**2 + h**2)``). Returns 0.0 when either
    point is missing.
    """

    if a is None or b is None:
        return 0.0
    distance = _haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)
    if a.altitude is not None and b.altitude is not None:
        height = a.altitude - b.altitude
        return math.sqrt(distance**2 + height**2)
    return distance


def planar_distance(a: Optional[Localizable], b: Optional[Localizable]) -> float:
    """Degree-space distance between two points (not a real-world distance)."""

    if a is None or b is None:
        return 0.0
    lat_dif = a.latitude - b.latitude
    lon_dif = a.longitude - b.longitude
    return math.sqrt(lat_dif**2 + lon_dif**2)


def orthogonal_distance(
    point: Localizable, line_start: Localizable, line_end: Localizable
) -> float:
    """Perpendicular degree-space distance from ``point`` to a line.

    Computed as twice the triangle area divided by the base length. When the
    line endpoints coincide (see ``points_equal``) there is no line to project
    on, and the planar distance from ``point`` to ``line_start`` is returned.
    """

    if points_equal(line_start, line_end):
        return planar_distance(point, line_start)
    d_lat = line_end.latitude - line_start.latitude
    d_lon = line_end.longitude - line_start.longitude
    double_area = abs(
        d_lat * (point.longitude - line_start.longitude)
        - d_lon * (point.latitude - line_start.latitude)
    )
    base = math.sqrt(d_lat**2 + d_lon**2)
    return double_area / base


def great_circle_distance(
    a: Localizable, b: Localizable, unit: str = KILOMETERS
) -> float:
    """Spherical law of cosines distance.

    ``unit`` is ``"K"`` for kilometres, ``"M"`` for nautical miles; any other
    value returns statute miles.
    """

    theta = a.longitude - b.longitude
    dist = math.sin(math.radians(a.latitude)) * math.sin(
        math.radians(b.latitude)
    ) + math.cos(math.radians(a.latitude)) * math.cos(
        math.radians(b.latitude)
    ) * math.cos(
        math.radians(theta)
    )
    dist = math.degrees(math.acos(max(-1.0, min(dist, 1.0))))
    dist = dist * 60 * 1.1515
    if unit == KILOMETERS:
        return dist * 1.609344
    if unit == NAUTICAL_MILES:
        return dist * 0.8684
    return dist


# ---------------------------------------------------------------------------
# Vectorised helpers
# ---------------------------------------------------------------------------


def coordinate_arrays(
    points: Sequence[Localizable],
) -> tuple[FloatArray, FloatArray, FloatArray]:
    """Return latitude, longitude and altitude arrays (NaN for missing altitude)."""

    lats = np.fromiter((p.latitude for p in points), dtype=float, count=len(points))
    lons = np.fromiter((p.longitude for p in points), dtype=float, count=len(points))
    alts = np.fromiter(
        (np.nan if p.altitude is None else p.altitude for p in points),
        dtype=float,
        count=len(points),
    )
    return lats, lons, alts


def pairwise_haversine_m(points: Sequence[Localizable]) -> FloatArray:
    """Return the haversine distance between each pair of consecutive points."""

    if len(points) < 2:
        return np.zeros(0, dtype=float)
    lats, lons, alts = coordinate_arrays(points)
    lat_r = np.radians(lats)
    d_lat = np.radians(np.diff(lats))
    d_lon = np.radians(np.diff(lons))
    a = np.sin(d_lat / 2) ** 2 + (
        np.cos(lat_r[:-1]) * np.cos(lat_r[1:]) * np.sin(d_lon / 2) ** 2
    )
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    surface = EARTH_RADIUS_KM * c * 1000.0
    heights = np.diff(alts)
    # NaN height means at least one altitude was missing for the pair.
    return np.where(np.isnan(heights), surface, np.hypot(surface, heights))


def path_length_m(points: Sequence[Localizable]) -> float:
    """Sum of consecutive haversine distances along ``points``."""

    return float(np.sum(pairwise_haversine_m(points)))


def pairwise_planar_distances(points: Sequence[Localizable]) -> FloatArray:
    if len(points) < 2:
        return np.zeros(0, dtype=float)
    lats, lons, _ = coordinate_arrays(points)
    return np.hypot(np.diff(lats), np.diff(lons))


def orthogonal_distances(
    lats: FloatArray, lons: FloatArray, start: int, end: int
) -> FloatArray:
    """Orthogonal distances of points ``start..end`` (inclusive) to their chord.

    Vectorised counterpart of ``orthogonal_distance`` with the same policy for
    coincident chord endpoints.
    """

    seg_lats = lats[start : end + 1]
    seg_lons = lons[start : end + 1]
    lat0, lon0 = lats[start], lons[start]
    d_lat = lats[end] - lat0
    d_lon = lons[end] - lon0
    if tolerant_equals(lats[start], lats[end]) and tolerant_equals(
        lons[start], lons[end]
    ):
        return np.hypot(seg_lats - lat0, seg_lons - lon0)
    double_area = np.abs(d_lat * (seg_lons - lon0) - d_lon * (seg_lats - lat0))
    return double_area / math.sqrt(d_lat**2 + d_lon**2)


# ---------------------------------------------------------------------------
# Line and ray-casting predicates
# ---------------------------------------------------------------------------


def is_point_above_line(
    point: Localizable, line_start: Localizable, line_end: Localizable
) -> bool:
    """Return True if ``point`` lies "above" the line through the two points.

    Longitude and latitude are treated as x and y. Above means more to the
    North; for a vertical line (equal longitudes) points to the West count as
    above. The statement is arbitrary and only useful for comparisons.
    """

    if line_start.longitude < line_end.longitude:
        left, right = line_start, line_end
    elif line_start.longitude > line_end.longitude:
        left, right = line_end, line_start
    elif line_start.latitude < line_end.latitude:
        left, right = line_start, line_end
    else:
        left, right = line_end, line_start

    x_diff = right.longitude - left.longitude
    lon_dist = point.longitude - left.longitude
    if x_diff == 0:
        return lon_dist < 0
    slope = (right.latitude - left.latitude) / x_diff
    lat_dist = point.latitude - left.latitude
    return lat_dist > lon_dist * slope


def are_points_on_same_side_of_line(
    point: Localizable,
    reference: Localizable,
    line_start: Localizable,
    line_end: Localizable,
) -> bool:
    return is_point_above_line(point, line_start, line_end) == is_point_above_line(
        reference, line_start, line_end
    )


def ray_casting_test_for_segment(
    first: Optional[Localizable],
    second: Optional[Localizable],
    reference_latitude: float,
) -> bool:
    """Return True if the segment reaches or crosses ``reference_latitude``."""

    if first is None or second is None:
        return False
    if tolerant_equals(first.latitude, reference_latitude) or tolerant_equals(
        second.latitude, reference_latitude
    ):
        return True
    if first.latitude > reference_latitude > second.latitude:
        return True
    return first.latitude < reference_latitude < second.latitude


def find_crossing_longitude(
    first: Localizable, second: Localizable, reference_latitude: float
) -> Optional[float]:
    """Longitude where the segment crosses ``reference_latitude``, or None."""

    if not ray_casting_test_for_segment(first, second, reference_latitude):
        return None
    if tolerant_equals(first.latitude, second.latitude):
        return first.longitude
    lat_dif = first.latitude - second.latitude
    lon_dif = first.longitude - second.longitude
    offset = (first.latitude - reference_latitude) / lat_dif
    return first.longitude - lon_dif * offset


def unidirectional_ray_casting_test(
    first: Optional[Localizable],
    second: Optional[Localizable],
    tested: Localizable,
) -> bool:
    """Return True if the segment crosses the eastward ray starting at ``tested``.

    When a vertex sits on the ray latitude the crossing only counts if the
    other vertex is below the tested point, so shared vertices are counted
    once.
    """

    if first is None or second is None:
        return False
    first_on_ray = points_on_same_latitude(first, tested)
    second_on_ray = points_on_same_latitude(second, tested)
    if first_on_ray and second_on_ray:
        return False
    if first_on_ray or second_on_ray:
        vertex, other = (first, second) if first_on_ray else (second, first)
        east = vertex.longitude > tested.longitude or tolerant_equals(
            vertex.longitude, tested.longitude
        )
        return east and other.latitude < tested.latitude
    crossing = find_crossing_longitude(first, second, tested.latitude)
    return crossing is not None and (
        crossing > tested.longitude or tolerant_equals(crossing, tested.longitude)
    )


def point_in_polygon(point: Localizable, polygon: Sequence[Localizable]) -> bool:
    """Return True if ``point`` falls inside the closed ``polygon`` ring."""

    if len(polygon) < 3:
        return False
    crossings = 0
    for index, vertex in enumerate(polygon):
        following = polygon[(index + 1) % len(polygon)]
        if points_equal(vertex, following):
            continue
        if unidirectional_ray_casting_test(vertex, following, point):
            crossings += 1
    return crossings % 2 == 1


__all__ = [
    "tolerant_equals",
    "points_equal",
    "points_on_same_latitude",
    "haversine_distance_m",
    "planar_distance",
    "orthogonal_distance",
    "great_circle_distance",
    "coordinate_arrays",
    "pairwise_haversine_m",
    "path_length_m",
    "pairwise_planar_distances",
    "orthogonal_distances",
    "is_point_above_line",
    "are_points_on_same_side_of_line",
    "ray_casting_test_for_segment",
    "find_crossing_longitude",
    "unidirectional_ray_casting_test",
    "point_in_polygon",
]
