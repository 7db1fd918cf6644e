"""
Tracking engine for Proximity Monitor.

Holds all live state in one TrackingStore and derives from each reading:
- encounters for aircraft inside the detection zone
- ephemeral session tracks for every aircraft seen
- the farthest-ever distance record
"""

from proximity_monitor.tracking.records import (
    AircraftReading,
    Encounter,
    Trackpoint,
    SessionPoint,
    SessionTrack,
    DistanceRecord,
    LiveAircraft,
)
from proximity_monitor.tracking.store import TrackingStore
from proximity_monitor.tracking.encounters import EncounterTracker
from proximity_monitor.tracking.session_tracks import SessionTrackStore
from proximity_monitor.tracking.distance_record import DistanceRecordTracker

__all__ = [
    'AircraftReading',
    'Encounter',
    'Trackpoint',
    'SessionPoint',
    'SessionTrack',
    'DistanceRecord',
    'LiveAircraft',
    'TrackingStore',
    'EncounterTracker',
    'SessionTrackStore',
    'DistanceRecordTracker',
]
