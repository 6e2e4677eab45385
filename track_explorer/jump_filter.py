"""Rejection of "spike and return" GPS jumps."""

from __future__ import annotations

import logging
import time
from typing import List, Sequence, TypeVar

from .geometry import haversine_distance_m
from .models import GeoPoint

P = TypeVar("P", bound=GeoPoint)

_log = logging.getLogger(__name__)


def is_jump(previous: GeoPoint, current: GeoPoint, following: GeoPoint) -> bool:
    """Return True if ``current`` looks like a jump between its neighbours.

    The triangle L1 (previous), L2 (current), L3 (following) is inspected:
    L2 is kept only when it is closer to each neighbour than the neighbours
    are to each other, i.e. ``L1->L2 < L1->L3`` and ``L2->L3 < L1->L3``.
    """

    d_prev_cur = haversine_distance_m(previous, current)
    d_cur_next = haversine_distance_m(current, following)
    d_prev_next = haversine_distance_m(previous, following)
    return not (d_prev_cur < d_prev_next and d_cur_next < d_prev_next)


def filter_jumps(points: Sequence[P]) -> List[P]:
    """Return ``points`` sorted by timestamp with interior jumps removed.

    The first and last points are always kept. Neighbours are taken from the
    sorted input, not from the already filtered output. Inputs of three points
    or fewer are returned sorted but otherwise untouched.
    """

    ordered = sorted(points)
    if len(ordered) <= 3:
        return ordered
    filtered = [ordered[0]]
    for index in range(1, len(ordered) - 1):
        current = ordered[index]
        if not is_jump(ordered[index - 1], current, ordered[index + 1]):
            filtered.append(current)
    filtered.append(ordered[-1])
    return filtered


class GpsJumpFilter:
    """Pipeline stage wrapping ``filter_jumps`` with logging."""

    name = "GPS jumps filter"

    def apply(self, points: Sequence[P]) -> List[P]:
        started = time.perf_counter()
        filtered = filter_jumps(points)
        removed = len(points) - len(filtered)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if removed:
            _log.warning(
                "Filtered %d locations as GPS jumps in %.1f ms, %d locations remaining",
                removed,
                elapsed_ms,
                len(filtered),
            )
        else:
            _log.debug("No GPS jumps found among %d locations", len(points))
        return filtered


__all__ = ["GpsJumpFilter", "filter_jumps", "is_jump"]
