"""Benchmark the track pipeline stages with large point counts."""

from __future__ import annotations

import argparse
import math
import statistics
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Late imports rely on the adjusted sys.path above.
from track_explorer.aggregation import compute_track_statistics  # noqa: E402
from track_explorer.config import OPTIMIZATION_COEFFICIENT  # noqa: E402
from track_explorer.jump_filter import filter_jumps  # noqa: E402
from track_explorer.models import LocationMeasurement, Track  # noqa: E402
from track_explorer.service import map_measurements  # noqa: E402
from track_explorer.simplify import simplify_path  # noqa: E402


@dataclass(slots=True)
class StageDurations:
    """Timing measurements (in seconds) for the track pipeline."""

    mapping: float
    jump_filter: float
    simplify: float
    aggregation: float

    @property
    def total(self) -> float:
        return self.mapping + self.jump_filter + self.simplify + self.aggregation


@dataclass(slots=True)
class BenchmarkSummary:
    point_count: int
    iterations: int
    kept_points: int
    mean_mapping_ms: float
    mean_jump_filter_ms: float
    mean_simplify_ms: float
    mean_aggregation_ms: float
    mean_total_ms: float
    worst_total_ms: float


def _build_records(point_count: int) -> List[LocationMeasurement]:
    """Generate a winding walk with a spike every 500 points."""

    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    records = []
    for idx in range(point_count):
        lat = 45.0 + idx * 1.0e-5
        lon = 7.0 + 2.0e-4 * math.sin(idx / 50.0)
        if idx % 500 == 250:
            lon += 0.05
        records.append(
            LocationMeasurement(
                unit_id="bench",
                device_id=f"dev-{idx % 2}",
                timestamp=start + timedelta(seconds=idx),
                latitude=lat,
                longitude=lon,
                altitude=300.0 + idx % 20,
                speed=1.2,
            )
        )
    # Reverse so the stable sort has real work to do.
    records.reverse()
    return records


def _run_iteration(
    records: List[LocationMeasurement], coefficient: int
) -> tuple[StageDurations, int]:
    start = time.perf_counter()
    points = map_measurements(records)
    mapping = time.perf_counter() - start

    start = time.perf_counter()
    points = filter_jumps(points)
    jump_filter = time.perf_counter() - start

    start = time.perf_counter()
    points = simplify_path(points, coefficient)
    simplify = time.perf_counter() - start

    start = time.perf_counter()
    stats = compute_track_statistics(Track.from_points("bench", points))
    _ = stats
    aggregation = time.perf_counter() - start

    return (
        StageDurations(
            mapping=mapping,
            jump_filter=jump_filter,
            simplify=simplify,
            aggregation=aggregation,
        ),
        len(points),
    )


def run_benchmark(
    point_count: int, iterations: int, coefficient: int = OPTIMIZATION_COEFFICIENT
) -> BenchmarkSummary:
    """Benchmark the pipeline and return aggregated timings."""

    if point_count < 1000:
        raise ValueError("point_count must be at least 1,000")
    if iterations <= 0:
        raise ValueError("iterations must be positive")

    records = _build_records(point_count)
    durations: List[StageDurations] = []
    kept = 0
    for _ in range(iterations):
        timing, kept = _run_iteration(records, coefficient)
        durations.append(timing)

    return BenchmarkSummary(
        point_count=point_count,
        iterations=iterations,
        kept_points=kept,
        mean_mapping_ms=statistics.fmean(d.mapping for d in durations) * 1000.0,
        mean_jump_filter_ms=statistics.fmean(d.jump_filter for d in durations) * 1000.0,
        mean_simplify_ms=statistics.fmean(d.simplify for d in durations) * 1000.0,
        mean_aggregation_ms=statistics.fmean(d.aggregation for d in durations) * 1000.0,
        mean_total_ms=statistics.fmean(d.total for d in durations) * 1000.0,
        worst_total_ms=max(d.total for d in durations) * 1000.0,
    )


def _format_summary(summary: BenchmarkSummary) -> Dict[str, float]:
    return {
        "point_count": summary.point_count,
        "iterations": summary.iterations,
        "kept_points": summary.kept_points,
        "mean_mapping_ms": summary.mean_mapping_ms,
        "mean_jump_filter_ms": summary.mean_jump_filter_ms,
        "mean_simplify_ms": summary.mean_simplify_ms,
        "mean_aggregation_ms": summary.mean_aggregation_ms,
        "mean_total_ms": summary.mean_total_ms,
        "worst_total_ms": summary.worst_total_ms,
    }


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark the track pipeline with large synthetic tracks",
    )
    parser.add_argument(
        "--points",
        type=int,
        default=20000,
        help="Number of synthetic measurements",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of repetitions for averaging",
    )
    parser.add_argument(
        "--coefficient",
        type=int,
        default=OPTIMIZATION_COEFFICIENT,
        help="Simplification coefficient",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    summary = run_benchmark(args.points, args.iterations, args.coefficient)
    for key, value in _format_summary(summary).items():
        if key in {"point_count", "iterations", "kept_points"}:
            print(f"{key}: {value}")
        else:
            print(f"{key}: {value:.3f}")


if __name__ == "__main__":
    main()
