"""Tests for Ramer-Douglas-Peucker path simplification."""

from __future__ import annotations

import logging
import threading

import pytest

from conftest import make_points
from track_explorer.simplify import PathSimplifier, compute_epsilon, simplify_path

# Simplifies to points 0, 2, 3, 4 and 6 with the default coefficient.
DETOUR = [
    (0.0, 0.0),
    (0.0, 1.0),
    (0.0, 2.0),
    (1.0, 3.0),
    (0.0, 4.0),
    (0.0, 5.0),
    (0.0, 6.0),
]


def test_collinear_points_collapse_to_endpoints(straight_line_points) -> None:
    simplified = simplify_path(straight_line_points, 3)
    assert simplified == [straight_line_points[0], straight_line_points[-1]]


def test_compute_epsilon_scales_with_coefficient(straight_line_points) -> None:
    assert compute_epsilon(straight_line_points, 3) == pytest.approx(4.0 / 15.0)
    assert compute_epsilon(straight_line_points, 1) == pytest.approx(4.0 / 5.0)
    assert compute_epsilon([], 3) == 0.0


@pytest.mark.parametrize("coefficient", [0, -1])
def test_non_positive_coefficient_is_rejected(straight_line_points, coefficient) -> None:
    with pytest.raises(ValueError):
        compute_epsilon(straight_line_points, coefficient)
    with pytest.raises(ValueError):
        simplify_path(straight_line_points, coefficient)
    with pytest.raises(ValueError):
        PathSimplifier(coefficient)


def test_short_inputs_are_returned_unchanged() -> None:
    points = make_points([(0.0, 0.0), (5.0, 5.0)])
    assert simplify_path(points, 3) == points
    assert simplify_path(points[:1], 3) == points[:1]
    assert simplify_path([], 3) == []


def test_significant_deviation_is_kept() -> None:
    points = make_points(DETOUR)
    simplified = simplify_path(points, 3)
    assert simplified == [points[i] for i in (0, 2, 3, 4, 6)]


def test_smaller_coefficient_simplifies_more() -> None:
    points = make_points(DETOUR)
    simplified = simplify_path(points, 1)
    assert simplified == [points[0], points[3], points[6]]


def test_zigzag_keeps_every_point() -> None:
    points = make_points([(0.0, 0.0), (1.0, 1.0), (0.0, 2.0), (1.0, 3.0), (0.0, 4.0)])
    assert simplify_path(points, 3) == points


def test_simplification_is_idempotent_on_detour() -> None:
    once = simplify_path(make_points(DETOUR), 3)
    twice = simplify_path(once, 3)
    assert twice == once


def test_closed_loop_is_not_collapsed() -> None:
    loop = make_points([(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0)])
    simplified = simplify_path(loop, 3)
    assert simplified == loop


def test_output_is_ordered_subset_with_endpoints() -> None:
    coords = [(0.001 * (i % 7), 0.01 * i) for i in range(60)]
    points = make_points(coords)
    simplified = simplify_path(points, 3)
    assert simplified[0] is points[0]
    assert simplified[-1] is points[-1]
    indices = [points.index(point) for point in simplified]
    assert indices == sorted(indices)


def test_long_curved_path_does_not_recurse() -> None:
    # Every split on a parabola lands next to a range end, the worst case
    # for a recursive implementation.
    coords = [((i * 0.001) ** 2, i * 0.001) for i in range(3000)]
    points = make_points(coords, step_s=1)
    simplified = simplify_path(points, 3)
    assert simplified[0] is points[0]
    assert simplified[-1] is points[-1]
    assert 2 <= len(simplified) <= len(points)


def test_path_simplifier_logs_reduction(straight_line_points, caplog) -> None:
    simplifier = PathSimplifier(3)
    with caplog.at_level(logging.INFO, logger="track_explorer.simplify"):
        result = simplifier.apply(straight_line_points)
    assert len(result) == 2
    assert "from 5 points down to 2 points" in caplog.text


def _simplify_within(points, coefficient, timeout_s=5.0):
    """Run ``simplify_path`` on a daemon thread and fail if it does not finish."""

    result = {}

    def _target():
        result["points"] = simplify_path(points, coefficient)

    worker = threading.Thread(target=_target, daemon=True)
    worker.start()
    worker.join(timeout_s)
    assert not worker.is_alive(), "simplify_path did not terminate"
    return result["points"]


def test_near_coincident_endpoints_terminate() -> None:
    # Ends differ by less than the coordinate tolerance but are not equal.
    points = make_points([(0.0, 0.0), (0.0, 0.000001), (0.0, 0.00005)])
    simplified = _simplify_within(points, 3)
    assert simplified == [points[0], points[-1]]


def test_parked_device_jitter_keeps_endpoints() -> None:
    points = make_points(
        [
            (0.0, 0.0),
            (0.00003, 0.00002),
            (0.00001, -0.00004),
            (0.00002, 0.00001),
            (0.00004, 0.00003),
        ]
    )
    simplified = _simplify_within(points, 3)
    assert simplified[0] is points[0]
    assert simplified[-1] is points[-1]
    indices = [points.index(point) for point in simplified]
    assert indices == sorted(indices)
    assert len(set(indices)) == len(indices)


def test_stationary_points_collapse_to_endpoints() -> None:
    points = make_points([(10.0, 10.0)] * 5)
    simplified = _simplify_within(points, 3)
    assert simplified == [points[0], points[-1]]
