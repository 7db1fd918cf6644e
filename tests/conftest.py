import math

import pytest

from proximity_monitor.config import EncounterConfig, SessionConfig, QueryConfig
from proximity_monitor.geo import EARTH_RADIUS_KM
from proximity_monitor.ingestion import IngestionPipeline
from proximity_monitor.persistence import PersistenceManager
from proximity_monitor.queries import QueryService
from proximity_monitor.tracking import (
    AircraftReading,
    TrackingStore,
    EncounterTracker,
    SessionTrackStore,
    DistanceRecordTracker,
)

OBSERVER = (59.257888, 18.198243)
START_TS = 1714765200.0


class FakeClock:
    def __init__(self, now: float = START_TS):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def north_of_observer(distance: float) -> float:
    """Latitude of the point `distance` km due north of the observer."""
    return OBSERVER[0] + math.degrees(distance / EARTH_RADIUS_KM)


def reading_at(hex_code: str, distance: float, **fields) -> AircraftReading:
    """Positioned reading `distance` km due north of the observer."""
    return AircraftReading(hex=hex_code, lat=north_of_observer(distance), lon=OBSERVER[1], **fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return TrackingStore()


@pytest.fixture
def encounter_settings():
    return EncounterConfig(
        detection_radius_km=10.0,
        trackpoint_interval=5.0,
        close_timeout=60.0,
        stale_timeout=300.0,
        cleanup_interval=60.0,
    )


@pytest.fixture
def session_settings():
    return SessionConfig(
        sample_interval=2.0,
        max_points=500,
        max_age=3600.0,
        eviction_interval=300.0,
    )


@pytest.fixture
def encounters(store, encounter_settings, clock):
    return EncounterTracker(store, encounter_settings, clock=clock)


@pytest.fixture
def sessions(store, session_settings, clock):
    return SessionTrackStore(store, session_settings, clock=clock)


@pytest.fixture
def records(store, clock):
    return DistanceRecordTracker(store, clock=clock)


@pytest.fixture
def db_url(tmp_path):
    return f'sqlite:///{tmp_path}/monitor.db'


@pytest.fixture
def persistence(db_url, clock):
    manager = PersistenceManager.from_url(db_url, clock=clock)
    manager.init_schema()
    yield manager
    manager.engine.dispose()


@pytest.fixture
def pipeline(store, encounters, sessions, records, persistence):
    return IngestionPipeline(
        store=store,
        observer_location=OBSERVER,
        encounters=encounters,
        sessions=sessions,
        records=records,
        persistence=persistence,
        snapshot_interval=30.0,
    )


@pytest.fixture
def queries(store, clock):
    return QueryService(store, QueryConfig(max_page_size=500), clock=clock)
