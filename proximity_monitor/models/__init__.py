"""
Database models for Proximity Monitor.

Tables hold durable snapshots of the in-memory tracking state:
1. encounters + trackpoints (periodic snapshot, with id counters)
2. distance_record (written on every change)

Session tracks are never persisted.
"""

from proximity_monitor.models.base import (
    Base,
    create_db_engine,
    make_session_factory,
    session_scope,
    init_db,
)
from proximity_monitor.models.encounter import EncounterRow, TrackpointRow
from proximity_monitor.models.distance_record import DistanceRecordRow
from proximity_monitor.models.counter import TrackingCounter

__all__ = [
    'Base',
    'create_db_engine',
    'make_session_factory',
    'session_scope',
    'init_db',
    'EncounterRow',
    'TrackpointRow',
    'DistanceRecordRow',
    'TrackingCounter',
]
