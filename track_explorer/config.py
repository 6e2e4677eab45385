"""Central configuration for the track explorer.

All values are constants imported by the rest of the package. Pipeline
defaults can be overridden through environment variables (optionally via a
local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------
# Mean Earth radius used by the haversine distance.
EARTH_RADIUS_KM = 6371.0

# Tolerance (degrees) under which two coordinates are considered equal.
COORDINATE_EPSILON = 1e-4


# ---------------------------------------------------------------------------
# Pipeline defaults (FilterOptions)
# ---------------------------------------------------------------------------
# Run the Ramer-Douglas-Peucker path optimizer.
PATH_OPTIMIZER_ENABLED = _env_bool("TRACK_PATH_OPTIMIZER_ENABLED", True)

# Divides the mean point spacing to obtain the simplification tolerance.
# Larger values keep more points.
OPTIMIZATION_COEFFICIENT = _env_int("TRACK_OPTIMIZATION_COEFFICIENT", 3)
if OPTIMIZATION_COEFFICIENT <= 0:
    OPTIMIZATION_COEFFICIENT = 3

# Drop "spike and return" GPS jumps before simplification.
GPS_JUMP_FILTER_ENABLED = _env_bool("TRACK_GPS_JUMP_FILTER_ENABLED", True)

# Add one Point feature per track point to GeoJSON output.
INCLUDE_WAYPOINTS = _env_bool("TRACK_INCLUDE_WAYPOINTS", False)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
# Format used when the requested token is missing or unknown.
DEFAULT_OUTPUT_FORMAT = os.getenv("TRACK_DEFAULT_OUTPUT_FORMAT", "GEOJSON")

# Substituted at formatting time when no point carries the value.
DEFAULT_ACCURACY_M = 10.0
DEFAULT_SPEED = 0.0
DEFAULT_HEADING = 0.0

# Creator attribute fallback for GPX documents without a subject.
GPX_CREATOR = "track_explorer"


# ---------------------------------------------------------------------------
# Measurement queries
# ---------------------------------------------------------------------------
# Days covered by a query when no start date is supplied.
DEFAULT_LOOKBACK_DAYS = _env_int("TRACK_DEFAULT_LOOKBACK_DAYS", 10)


# ---------------------------------------------------------------------------
# Performance tuning
# ---------------------------------------------------------------------------
# Threads used to map raw measurements into points.
MAPPING_MAX_WORKERS = _env_int("TRACK_MAPPING_MAX_WORKERS", 4)

# Batches at or below this size are mapped on the calling thread.
MAPPING_PARALLEL_THRESHOLD = _env_int("TRACK_MAPPING_PARALLEL_THRESHOLD", 512)
