"""
Configuration management for Proximity Monitor.

Loads settings from environment variables with sensible defaults.
All tunables (zone radius, sampling intervals, timeouts, sweep cadence)
live here so the tracking logic never hard-wires them.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

DEFAULT_OBSERVER_LOCATION = '59.257888,18.198243'


def _parse_location(value: str) -> Optional[Tuple[float, float]]:
    """Parse 'lat,lon' string into tuple, or None if empty/invalid."""
    if not value:
        return None
    try:
        lat, lon = value.split(',')
        return (float(lat.strip()), float(lon.strip()))
    except (ValueError, AttributeError):
        return None


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


_DATA_DIR = os.getenv('DATA_DIR', './data')


@dataclass(frozen=True)
class ObserverConfig:
    """Fixed observation point used for every distance calculation."""
    location: Tuple[float, float] = (
        _parse_location(os.getenv('OBSERVER_LOCATION', ''))
        or _parse_location(DEFAULT_OBSERVER_LOCATION)
    )

    @property
    def latitude(self) -> float:
        return self.location[0]

    @property
    def longitude(self) -> float:
        return self.location[1]


@dataclass(frozen=True)
class EncounterConfig:
    """Detection zone and encounter lifecycle settings."""
    detection_radius_km: float = _env_float('DETECTION_RADIUS_KM', 10.0)
    trackpoint_interval: float = _env_float('TRACKPOINT_INTERVAL_SECONDS', 5.0)
    close_timeout: float = _env_float('CLOSE_TIMEOUT_SECONDS', 60.0)
    stale_timeout: float = _env_float('STALE_TIMEOUT_SECONDS', 300.0)
    cleanup_interval: float = _env_float('STALE_CLEANUP_INTERVAL_SECONDS', 60.0)


@dataclass(frozen=True)
class SessionConfig:
    """Ephemeral session track settings."""
    sample_interval: float = _env_float('SESSION_SAMPLE_INTERVAL_SECONDS', 2.0)
    max_points: int = _env_int('SESSION_MAX_POINTS', 500)
    max_age: float = _env_float('SESSION_MAX_AGE_SECONDS', 3600.0)
    eviction_interval: float = _env_float('SESSION_EVICTION_INTERVAL_SECONDS', 300.0)


@dataclass(frozen=True)
class DatabaseConfig:
    """Durable snapshot storage."""
    data_dir: str = _DATA_DIR
    url: str = os.getenv(
        'DATABASE_URL',
        f'sqlite:///{os.path.join(_DATA_DIR, "proximity_monitor.db")}',
    )
    snapshot_interval: float = _env_float('SNAPSHOT_INTERVAL_SECONDS', 30.0)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')


@dataclass(frozen=True)
class QueryConfig:
    """Read-side limits."""
    max_page_size: int = _env_int('MAX_PAGE_SIZE', 500)


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    observer: ObserverConfig
    encounters: EncounterConfig
    sessions: SessionConfig
    database: DatabaseConfig
    queries: QueryConfig

    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        observer=ObserverConfig(),
        encounters=EncounterConfig(),
        sessions=SessionConfig(),
        database=DatabaseConfig(),
        queries=QueryConfig(),
        debug=os.getenv('MONITOR_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
