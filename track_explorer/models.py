"""Value types shared by the track pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from . import config


class Localizable(Protocol):
    """Anything with a position that geometry helpers can measure."""

    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...

    @property
    def altitude(self) -> Optional[float]: ...


class Traceable(Protocol):
    """Anything carrying a UTC timestamp."""

    @property
    def timestamp(self) -> datetime: ...


def normalize_timestamp(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime truncated to milliseconds.

    Naive datetimes are interpreted as UTC.
    """

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def epoch_ms(value: datetime) -> int:
    """Return milliseconds since the Unix epoch for ``value``."""

    delta = normalize_timestamp(value) - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def from_epoch_ms(value: int) -> datetime:
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=value)


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """Immutable positional sample.

    Points sort by timestamp only; equality compares every field.
    """

    unit_id: str
    collector_id: str
    timestamp: datetime
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    speed: float = 0.0
    heading: float = 0.0
    accuracy: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", normalize_timestamp(self.timestamp))

    def __lt__(self, other: "GeoPoint") -> bool:
        if not isinstance(other, GeoPoint):
            return NotImplemented
        return self.timestamp < other.timestamp

    @property
    def timestamp_ms(self) -> int:
        return epoch_ms(self.timestamp)

    def as_vector(self) -> List[float]:
        """Return ``[latitude, longitude, altitude]`` with a 0.0 altitude default."""

        altitude = self.altitude if self.altitude is not None else 0.0
        return [self.latitude, self.longitude, altitude]

    def as_lonlatalt(self) -> List[float]:
        """Return the GeoJSON position ``[longitude, latitude, altitude]``.

        A missing altitude is written as 0.0, as in ``as_vector``.
        """

        altitude = self.altitude if self.altitude is not None else 0.0
        return [self.longitude, self.latitude, altitude]


def distinct_collector_ids(points: Iterable[GeoPoint]) -> Tuple[str, ...]:
    """Return collector ids in order of first appearance."""

    seen: dict[str, None] = {}
    for point in points:
        seen.setdefault(point.collector_id, None)
    return tuple(seen)


@dataclass(frozen=True, slots=True)
class Track:
    """Timestamp-ordered points recorded for one tracked subject."""

    subject_id: str
    device_ids: Tuple[str, ...]
    points: Tuple[GeoPoint, ...]

    @classmethod
    def from_points(
        cls,
        subject_id: str,
        points: Iterable[GeoPoint],
        device_ids: Optional[Sequence[str]] = None,
    ) -> "Track":
        ordered = tuple(sorted(points))
        if device_ids is None:
            devices = distinct_collector_ids(ordered)
        else:
            devices = tuple(device_ids)
        return cls(subject_id=subject_id, device_ids=devices, points=ordered)

    @property
    def is_empty(self) -> bool:
        return not self.points

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True, slots=True)
class FilterOptions:
    """Switches and tuning for the track pipeline."""

    path_optimizer_enabled: bool = True
    optimization_coefficient: int = 3
    gps_jump_filter_enabled: bool = True
    include_waypoints: bool = False

    def __post_init__(self) -> None:
        if self.optimization_coefficient <= 0:
            raise ValueError("optimization_coefficient must be greater than zero")

    @classmethod
    def default(cls) -> "FilterOptions":
        return cls(
            path_optimizer_enabled=config.PATH_OPTIMIZER_ENABLED,
            optimization_coefficient=config.OPTIMIZATION_COEFFICIENT,
            gps_jump_filter_enabled=config.GPS_JUMP_FILTER_ENABLED,
            include_waypoints=config.INCLUDE_WAYPOINTS,
        )


@dataclass(slots=True)
class LocationMeasurement:
    """Raw measurement record as delivered by a measurement store."""

    unit_id: str
    device_id: str
    timestamp: datetime
    mission_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    accuracy_m: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None


def _default_start(now: datetime, lookback_days: int) -> datetime:
    day = (now - timedelta(days=lookback_days)).date()
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


@dataclass(slots=True)
class MeasurementQuery:
    """Selection of measurements for one unit over a time window."""

    unit_id: str
    start: datetime
    end: datetime
    mission_id: Optional[str] = None

    @classmethod
    def from_epoch_ms(
        cls,
        unit_id: str,
        mission_id: Optional[str] = None,
        start_ms: Optional[int] = None,
        end_ms: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
        lookback_days: Optional[int] = None,
    ) -> "MeasurementQuery":
        """Build a query from epoch-millisecond bounds.

        A missing or zero start selects midnight UTC ``lookback_days`` before
        today; a missing or zero end selects ``now``.
        """

        current = normalize_timestamp(now or datetime.now(timezone.utc))
        days = config.DEFAULT_LOOKBACK_DAYS if lookback_days is None else lookback_days
        start = from_epoch_ms(start_ms) if start_ms else _default_start(current, days)
        end = from_epoch_ms(end_ms) if end_ms else current
        return cls(unit_id=unit_id, mission_id=mission_id, start=start, end=end)


__all__ = [
    "Localizable",
    "Traceable",
    "GeoPoint",
    "Track",
    "FilterOptions",
    "LocationMeasurement",
    "MeasurementQuery",
    "distinct_collector_ids",
    "epoch_ms",
    "from_epoch_ms",
    "normalize_timestamp",
]
