"""Command line entry point: export a measurement file as GeoJSON or GPX.

Usage examples:

    # GeoJSON for one unit over the default window, printed to stdout
    python -m track_explorer --input measurements.csv --unit unit-42

    # GPX for a mission, every recorded point, written to a file
    python -m track_explorer --input measurements.xlsx --unit unit-42 \
        --mission m-7 --all-dates --format GPX --output-file unit-42.gpx
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import List, Optional, Sequence

from .config import (
    DEFAULT_OUTPUT_FORMAT,
    GPS_JUMP_FILTER_ENABLED,
    INCLUDE_WAYPOINTS,
    OPTIMIZATION_COEFFICIENT,
    PATH_OPTIMIZER_ENABLED,
)
from .errors import MeasurementFormatError
from .measurements import filter_measurements, read_measurements
from .models import FilterOptions, LocationMeasurement, MeasurementQuery
from .service import TrackService

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_EXPORT_ERROR = 2


def _setup_logging(level: str = "INFO") -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export recorded locations as a simplified GeoJSON or GPX track"
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Measurement file (.csv, .xlsx or .gpx)",
    )
    parser.add_argument("--unit", required=True, help="Tracked unit id")
    parser.add_argument("--mission", help="Restrict to a mission id")
    parser.add_argument(
        "--format",
        default=DEFAULT_OUTPUT_FORMAT,
        help="Output format token: GEOJSON or GPX (unknown values fall back to GEOJSON)",
    )
    parser.add_argument(
        "--start-date",
        type=int,
        default=0,
        help="Window start in epoch milliseconds (0 = start of day, 10 days ago)",
    )
    parser.add_argument(
        "--end-date",
        type=int,
        default=0,
        help="Window end in epoch milliseconds (0 = now)",
    )
    parser.add_argument(
        "--all-dates",
        action="store_true",
        help="Ignore the time window and use every measurement of the unit",
    )
    parser.add_argument(
        "--no-optimize",
        action="store_true",
        default=not PATH_OPTIMIZER_ENABLED,
        help="Disable Ramer-Douglas-Peucker path simplification",
    )
    parser.add_argument(
        "--coefficient",
        type=int,
        default=OPTIMIZATION_COEFFICIENT,
        help="Simplification coefficient (higher keeps more points)",
    )
    parser.add_argument(
        "--no-jump-filter",
        action="store_true",
        default=not GPS_JUMP_FILTER_ENABLED,
        help="Disable GPS jump filtering",
    )
    parser.add_argument(
        "--waypoints",
        action="store_true",
        default=INCLUDE_WAYPOINTS,
        help="Add one GeoJSON Point feature per track point",
    )
    parser.add_argument(
        "--output-file",
        help="Write output to this file instead of stdout",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Python logging level",
    )
    return parser


def _select_records(
    records: Sequence[LocationMeasurement], args: argparse.Namespace
) -> List[LocationMeasurement]:
    if args.all_dates:
        return [
            r
            for r in records
            if r.unit_id == args.unit
            and (args.mission is None or r.mission_id == args.mission)
        ]
    query = MeasurementQuery.from_epoch_ms(
        args.unit, args.mission, args.start_date, args.end_date
    )
    logging.info(
        "Selecting locations from %s to %s for unit '%s'",
        query.start,
        query.end,
        query.unit_id,
    )
    return filter_measurements(records, query)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.log_level)

    if args.coefficient <= 0:
        parser.error("--coefficient must be greater than zero")
    options = FilterOptions(
        path_optimizer_enabled=not args.no_optimize,
        optimization_coefficient=args.coefficient,
        gps_jump_filter_enabled=not args.no_jump_filter,
        include_waypoints=args.waypoints,
    )

    try:
        records = read_measurements(args.input, unit_id=args.unit)
    except (MeasurementFormatError, FileNotFoundError) as exc:
        logging.error("Failed to load measurements from '%s': %s", args.input, exc)
        return EXIT_INPUT_ERROR

    selected = _select_records(records, args)
    logging.info("Selected %d of %d measurements", len(selected), len(records))

    result = TrackService().export(args.unit, selected, args.format, options)
    if not result.ok:
        logging.error("Export failed: %s", result.error)
        return EXIT_EXPORT_ERROR

    if args.output_file:
        output_path = Path(args.output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(result.content or "")
        logging.info("Output written to %s", output_path)
    else:
        sys.stdout.write((result.content or "") + "\n")
    return EXIT_OK
