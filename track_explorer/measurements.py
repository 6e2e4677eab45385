"""Measurement selection and file readers.

Stands in for the measurement store: selects records for a unit/mission and
time window, and loads raw records from CSV, Excel or GPX files.
"""

from __future__ import annotations

from datetime import datetime
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from defusedxml import ElementTree as ET
import pandas as pd

from .errors import MeasurementFormatError
from .models import LocationMeasurement, MeasurementQuery, normalize_timestamp

GPX_NS = {
    "g": "http://www.topografix.com/GPX/1/1",
}

_UNIT_COL = "unit_id"
_DEVICE_COL = "device_id"
_TIME_COL = "timestamp"
_REQUIRED_COLS = {_UNIT_COL, _DEVICE_COL, _TIME_COL}
_OPTIONAL_NUMERIC_COLS = (
    "latitude",
    "longitude",
    "altitude",
    "accuracy_m",
    "heading",
    "speed",
)

LOGGER = logging.getLogger(__name__)


def filter_measurements(
    records: Iterable[LocationMeasurement], query: MeasurementQuery
) -> List[LocationMeasurement]:
    """Return the records matching ``query``.

    A record matches when it belongs to the query unit (and mission, when
    one is given) and its timestamp lies strictly between start and end.
    """

    start = normalize_timestamp(query.start)
    end = normalize_timestamp(query.end)
    selected = []
    for record in records:
        if record.unit_id != query.unit_id:
            continue
        if query.mission_id is not None and record.mission_id != query.mission_id:
            continue
        if start < normalize_timestamp(record.timestamp) < end:
            selected.append(record)
    return selected


class InMemoryMeasurementProvider:
    """Measurement provider over a fixed list of records."""

    def __init__(self, records: Sequence[LocationMeasurement]):
        self._records = list(records)

    def __call__(self, query: MeasurementQuery) -> List[LocationMeasurement]:
        selected = filter_measurements(self._records, query)
        LOGGER.debug(
            "Selected %d of %d measurements for unit %s",
            len(selected),
            len(self._records),
            query.unit_id,
        )
        return selected


def _is_blank(value: object) -> bool:
    return value is None or pd.isna(value) or str(value).strip() == ""


def _clean_id(value: object) -> Optional[str]:
    if _is_blank(value):
        return None
    candidate = str(value).strip()
    if candidate.endswith(".0"):
        candidate = candidate[:-2]
    return candidate


def _clean_float(value: object, column: str, row_label: str) -> Optional[float]:
    if _is_blank(value):
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise MeasurementFormatError(
            f"Invalid {column} '{value}' in {row_label}"
        ) from exc


def _validate_columns(df: pd.DataFrame, source: str) -> None:
    missing = _REQUIRED_COLS - set(df.columns)
    if missing:
        raise MeasurementFormatError(
            f"Missing columns in {source}: {', '.join(sorted(missing))}. Present: {list(df.columns)}"
        )


def _parse_timestamps(column: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(column):
        return pd.to_datetime(column, unit="ms", errors="coerce", utc=True)
    return pd.to_datetime(column, errors="coerce", utc=True)


def measurements_from_frame(
    df: pd.DataFrame, source: str = "frame"
) -> List[LocationMeasurement]:
    """Convert a DataFrame of raw measurements into records.

    Numeric timestamps are read as epoch milliseconds. Rows lacking a
    timestamp, unit or device raise ``MeasurementFormatError``.
    """

    df = df.rename(columns=lambda col: str(col).strip())
    _validate_columns(df, source)
    df[_TIME_COL] = _parse_timestamps(df[_TIME_COL])
    records: List[LocationMeasurement] = []
    for row_offset, row in enumerate(df.to_dict("records"), start=2):
        row_label = f"row {row_offset} of {source}"
        timestamp = row[_TIME_COL]
        if _is_blank(timestamp):
            raise MeasurementFormatError(f"Missing or invalid timestamp in {row_label}")
        unit_id = _clean_id(row[_UNIT_COL])
        device_id = _clean_id(row[_DEVICE_COL])
        if unit_id is None or device_id is None:
            raise MeasurementFormatError(f"Missing unit or device id in {row_label}")
        numeric = {
            col: _clean_float(row.get(col), col, row_label)
            for col in _OPTIONAL_NUMERIC_COLS
        }
        records.append(
            LocationMeasurement(
                unit_id=unit_id,
                device_id=device_id,
                timestamp=timestamp.to_pydatetime(),
                mission_id=_clean_id(row.get("mission_id")),
                **numeric,
            )
        )
    return records


def _assert_file_exists(path: Path) -> None:
    if not path.is_file():
        raise FileNotFoundError(f"Measurement file not found: {path}")


def read_measurements_csv(path: str | Path) -> List[LocationMeasurement]:
    file_path = Path(path)
    _assert_file_exists(file_path)
    df = pd.read_csv(file_path)
    return measurements_from_frame(df, source=file_path.name)


def read_measurements_excel(
    path: str | Path, sheet_name: str | int = 0
) -> List[LocationMeasurement]:
    file_path = Path(path)
    _assert_file_exists(file_path)
    try:
        df = pd.read_excel(file_path, sheet_name=sheet_name)
    except ValueError as exc:
        raise MeasurementFormatError(
            f"Sheet '{sheet_name}' not found in {file_path.name}: {exc}"
        ) from exc
    return measurements_from_frame(df, source=f"'{sheet_name}' sheet")


def parse_iso8601(value: str) -> datetime:
    """Parse ISO timestamps and normalise trailing Z."""

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return normalize_timestamp(datetime.fromisoformat(value))
    except ValueError as exc:
        raise MeasurementFormatError(f"Invalid ISO timestamp: {value}") from exc


def _child_text(element: ET.Element, local_name: str) -> Optional[str]:
    """Return the text of the first descendant named ``local_name`` in any namespace."""

    for child in element.iter():
        tag = child.tag.rsplit("}", 1)[-1] if isinstance(child.tag, str) else ""
        if tag == local_name and child is not element and child.text:
            return child.text.strip()
    return None


def _optional_float(text: Optional[str]) -> Optional[float]:
    if not text:
        return None
    try:
        return float(text)
    except ValueError as exc:
        raise MeasurementFormatError(f"Invalid numeric value '{text}'") from exc


def read_measurements_gpx(
    path: str | Path,
    unit_id: str,
    device_id: str = "gpx",
    mission_id: Optional[str] = None,
) -> List[LocationMeasurement]:
    """Load every ``trkpt`` of a GPX 1.1 file as a measurement of ``unit_id``.

    ``src`` overrides ``device_id`` per point; speed and course are read
    from track point extensions when present.
    """
    file_path = Path(path)
    _assert_file_exists(file_path)
    try:
        root = ET.parse(file_path).getroot()
    except ET.ParseError as exc:
        raise MeasurementFormatError(f"Unable to parse GPX {file_path.name}: {exc}") from exc
    records: List[LocationMeasurement] = []
    for index, point in enumerate(root.findall(".//g:trkpt", GPX_NS), start=1):
        time_text = _child_text(point, "time")
        if time_text is None:
            raise MeasurementFormatError(
                f"Track point {index} in {file_path.name} has no <time>"
            )
        records.append(
            LocationMeasurement(
                unit_id=unit_id,
                device_id=_child_text(point, "src") or device_id,
                timestamp=parse_iso8601(time_text),
                mission_id=mission_id,
                latitude=_optional_float(point.get("lat")),
                longitude=_optional_float(point.get("lon")),
                altitude=_optional_float(_child_text(point, "ele")),
                heading=_optional_float(_child_text(point, "course")),
                speed=_optional_float(_child_text(point, "speed")),
            )
        )
    LOGGER.debug("Read %d track points from %s", len(records), file_path)
    return records


def read_measurements(
    path: str | Path,
    *,
    unit_id: Optional[str] = None,
    sheet_name: str | int = 0,
) -> List[LocationMeasurement]:
    """Read measurements from ``path`` choosing the reader from the suffix.

    ``unit_id`` is required for GPX files, which carry no unit column.
    """

    file_path = Path(path)
    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        return read_measurements_csv(file_path)
    if suffix in {".xlsx", ".xls"}:
        return read_measurements_excel(file_path, sheet_name=sheet_name)
    if suffix == ".gpx":
        if not unit_id:
            raise MeasurementFormatError("A unit id is required to read GPX files")
        return read_measurements_gpx(file_path, unit_id)
    raise MeasurementFormatError(f"Unsupported measurement file type: {file_path.name}")


__all__ = [
    "InMemoryMeasurementProvider",
    "filter_measurements",
    "measurements_from_frame",
    "parse_iso8601",
    "read_measurements",
    "read_measurements_csv",
    "read_measurements_excel",
    "read_measurements_gpx",
]
