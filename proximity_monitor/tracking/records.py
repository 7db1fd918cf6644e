"""
In-memory record types for tracked aircraft.

AircraftReading is the transient input; Encounter, Trackpoint and
DistanceRecord are durable; SessionTrack and SessionPoint never leave
memory.
"""

import math
from dataclasses import dataclass, field, asdict, replace
from typing import Optional, List, Any, Dict


def _to_float(value: Any) -> Optional[float]:
    """Coerce a feed value to float, treating non-numeric values as absent."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # 'nan' / 'inf' parse but are not measurements
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def clean_flight(value: Any) -> Optional[str]:
    """Trim a flight label, mapping empty strings to None."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


# Extended telemetry carried through to the distance record
EXTENDED_FIELDS = (
    'baro_rate', 'mach', 'tas', 'ias',
    'nav_altitude_mcp', 'nav_qnh', 'nav_heading',
    'rssi',
)


@dataclass
class AircraftReading:
    """
    One aircraft report from the telemetry feed.

    Mirrors the dump1090 aircraft.json record. All values except the hex
    address may be absent; readings without a finite lat/lon are inert.
    The hex is lower-cased and the flight label trimmed on construction.
    """
    hex: str
    flight: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    altitude: Optional[float] = None
    alt_baro: Optional[float] = None
    gs: Optional[float] = None
    track: Optional[float] = None
    seen: Optional[float] = None

    # Extended telemetry
    baro_rate: Optional[float] = None
    mach: Optional[float] = None
    tas: Optional[float] = None
    ias: Optional[float] = None
    nav_altitude_mcp: Optional[float] = None
    nav_qnh: Optional[float] = None
    nav_heading: Optional[float] = None
    rssi: Optional[float] = None
    messages: Optional[int] = None

    def __post_init__(self):
        self.hex = self.hex.strip().lower()
        self.flight = clean_flight(self.flight)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['AircraftReading']:
        """
        Parse a feed record into an AircraftReading.

        Returns None if the record is not a mapping or has no usable hex.
        Numeric fields that fail to parse (e.g. alt_baro == 'ground') are
        dropped rather than rejected.
        """
        if not isinstance(data, dict):
            return None

        hex_code = data.get('hex')
        if not hex_code or not isinstance(hex_code, str) or not hex_code.strip():
            return None

        numeric = {
            name: _to_float(data.get(name))
            for name in (
                'lat', 'lon', 'altitude', 'alt_baro', 'gs', 'track', 'seen',
            ) + EXTENDED_FIELDS
        }

        return cls(
            hex=hex_code,
            flight=data.get('flight'),
            messages=_to_int(data.get('messages')),
            **numeric,
        )

    def has_position(self) -> bool:
        """Check if this reading has valid position data."""
        if self.lat is None or self.lon is None:
            return False
        return math.isfinite(self.lat) and math.isfinite(self.lon)

    @property
    def resolved_altitude(self) -> Optional[float]:
        """Primary altitude, falling back to barometric altitude."""
        if self.altitude is not None:
            return self.altitude
        return self.alt_baro


@dataclass
class Encounter:
    """One continuous stay of an aircraft inside the detection zone."""
    id: int
    hex: str
    flight: Optional[str]
    start_ts: float
    end_ts: Optional[float]
    min_dist: float
    min_alt: Optional[float] = None
    max_alt: Optional[float] = None
    is_active: bool = True

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.end_ts is not None and self.end_ts > self.start_ts:
            return self.end_ts - self.start_ts
        return None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Trackpoint:
    """Sampled position belonging to an encounter."""
    id: int
    encounter_id: int
    ts: float
    lat: float
    lon: float
    alt: Optional[float] = None
    gs: Optional[float] = None
    track: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SessionPoint:
    ts: float
    lat: float
    lon: float
    alt: Optional[float] = None
    gs: Optional[float] = None
    track: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SessionTrack:
    """
    Ephemeral trail of recent positions for one aircraft.

    Kept for every aircraft regardless of zone membership and rebuilt
    from scratch after a restart.
    """
    hex: str
    flight: Optional[str]
    first_seen: float
    last_update: float
    points: List[SessionPoint] = field(default_factory=list)

    def snapshot(self) -> 'SessionTrack':
        """Detached copy safe to hand out to readers."""
        return replace(self, points=[replace(p) for p in self.points])

    def to_dict(self) -> dict:
        return {
            'hex': self.hex,
            'flight': self.flight,
            'first_seen': self.first_seen,
            'last_update': self.last_update,
            'points': [p.to_dict() for p in self.points],
        }

    def to_summary_dict(self) -> dict:
        return {
            'hex': self.hex,
            'flight': self.flight,
            'first_seen': self.first_seen,
            'last_update': self.last_update,
            'point_count': len(self.points),
        }


@dataclass
class DistanceRecord:
    """
    Farthest aircraft ever observed from the observation point.

    Tracking metadata (positions_tracked, tracking_duration_seconds,
    first_seen) describes the aircraft's session track at the moment the
    record was set.
    """
    hex: str
    flight: Optional[str]
    distance_km: float
    lat: float
    lon: float
    altitude: Optional[float]
    timestamp: float
    gs: Optional[float] = None
    track: Optional[float] = None

    # Extended telemetry
    baro_rate: Optional[float] = None
    mach: Optional[float] = None
    tas: Optional[float] = None
    ias: Optional[float] = None
    nav_altitude_mcp: Optional[float] = None
    nav_qnh: Optional[float] = None
    nav_heading: Optional[float] = None
    seen: Optional[float] = None
    rssi: Optional[float] = None
    messages: Optional[int] = None

    # Tracking metadata
    positions_tracked: int = 0
    tracking_duration_seconds: float = 0.0
    first_seen: Optional[float] = None
    set_at: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LiveAircraft:
    """Positioned aircraft from the most recent feed payload."""
    hex: str
    flight: Optional[str]
    lat: float
    lon: float
    altitude: Optional[float]
    gs: Optional[float]
    track: Optional[float]
    distance_km: float
    seen_seconds: float

    def to_dict(self) -> dict:
        return asdict(self)
