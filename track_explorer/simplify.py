"""Ramer-Douglas-Peucker path simplification."""

from __future__ import annotations

import logging
from typing import List, Sequence, TypeVar

import numpy as np

from .geometry import coordinate_arrays, orthogonal_distances, pairwise_planar_distances
from .models import Localizable

P = TypeVar("P", bound=Localizable)

_log = logging.getLogger(__name__)


def compute_epsilon(points: Sequence[Localizable], coefficient: int) -> float:
    """Return the simplification tolerance for ``points``.

    The tolerance is the summed planar spacing between consecutive points
    divided by ``len(points) * coefficient``. A larger coefficient gives a
    smaller tolerance and keeps more points.
    """

    if coefficient <= 0:
        raise ValueError("coefficient must be greater than zero")
    if not points:
        return 0.0
    total = float(np.sum(pairwise_planar_distances(points)))
    return total / (len(points) * coefficient)


def _keep_mask(points: Sequence[Localizable], tolerance: float) -> np.ndarray:
    """Mark the indices retained by RDP reduction at ``tolerance``.

    Index ranges are processed from an explicit stack rather than by
    recursion so that near-collinear inputs cannot exhaust the call stack.
    """

    count = len(points)
    keep = np.zeros(count, dtype=bool)
    keep[0] = keep[-1] = True
    lats, lons, _ = coordinate_arrays(points)
    stack = [(0, count - 1)]
    while stack:
        start, end = stack.pop()
        if end - start < 2:
            continue
        # Only interior points are split candidates.
        distances = orthogonal_distances(lats, lons, start, end)[1:-1]
        # argmax returns the first index reaching the maximum.
        offset = int(np.argmax(distances))
        max_distance = float(distances[offset])
        if max_distance > tolerance:
            farthest = start + 1 + offset
            _log.debug(
                "Splitting %d..%d at %d (distance=%s)", start, end, farthest, max_distance
            )
            keep[farthest] = True
            stack.append((farthest, end))
            stack.append((start, farthest))
    return keep


def simplify_path(points: Sequence[P], coefficient: int) -> List[P]:
    """Simplify ``points`` keeping the first and last point and the input order."""

    if coefficient <= 0:
        raise ValueError("coefficient must be greater than zero")
    if len(points) < 3:
        return list(points)
    tolerance = compute_epsilon(points, coefficient)
    _log.debug("Using RDP tolerance %s", tolerance)
    keep = _keep_mask(points, tolerance)
    return [point for point, kept in zip(points, keep) if kept]


class PathSimplifier:
    """Pipeline stage wrapping ``simplify_path`` with a fixed coefficient."""

    name = "Ramer-Douglas-Peucker"

    def __init__(self, coefficient: int):
        if coefficient <= 0:
            raise ValueError("coefficient must be greater than zero")
        self.coefficient = coefficient

    def apply(self, points: Sequence[P]) -> List[P]:
        simplified = simplify_path(points, self.coefficient)
        _log.info(
            "Shortened path from %d points down to %d points using coefficient %d",
            len(points),
            len(simplified),
            self.coefficient,
        )
        return simplified


__all__ = ["PathSimplifier", "compute_epsilon", "simplify_path"]
