"""
Farthest-ever-observed aircraft.

Every positioned reading is considered; the record only moves when a
reading is strictly farther than the current one. Replacements are rare,
so the caller writes each new record to durable storage right away
instead of waiting for the periodic snapshot.
"""

import logging
import time
from typing import Callable, Optional

from proximity_monitor.tracking.records import AircraftReading, DistanceRecord
from proximity_monitor.tracking.store import TrackingStore

logger = logging.getLogger(__name__)


class DistanceRecordTracker:
    """Maintains the single running distance record in the store."""

    def __init__(self, store: TrackingStore, clock: Callable[[], float] = time.time):
        self.store = store
        self._clock = clock

    def consider(self, reading: AircraftReading, distance: float) -> Optional[DistanceRecord]:
        """
        Replace the record if this reading is strictly farther.

        Returns the new record on replacement, None otherwise (ties
        included).
        """
        if not reading.has_position():
            return None

        with self.store.lock:
            current = self.store.distance_record
            if current is not None and distance <= current.distance_km:
                return None

            now = self._clock()
            session = self.store.session_tracks.get(reading.hex)

            record = DistanceRecord(
                hex=reading.hex,
                flight=reading.flight,
                distance_km=distance,
                lat=reading.lat,
                lon=reading.lon,
                altitude=reading.resolved_altitude,
                timestamp=now,
                gs=reading.gs,
                track=reading.track,
                baro_rate=reading.baro_rate,
                mach=reading.mach,
                tas=reading.tas,
                ias=reading.ias,
                nav_altitude_mcp=reading.nav_altitude_mcp,
                nav_qnh=reading.nav_qnh,
                nav_heading=reading.nav_heading,
                seen=reading.seen,
                rssi=reading.rssi,
                messages=reading.messages,
                positions_tracked=len(session.points) if session else 0,
                tracking_duration_seconds=(session.last_update - session.first_seen) if session else 0.0,
                first_seen=session.first_seen if session else None,
                set_at=now,
            )
            self.store.distance_record = record

        previous = f'{current.distance_km:.2f}km' if current else 'none'
        logger.info(
            f'New distance record: {reading.hex} ({reading.flight or "unknown"}) '
            f'at {distance:.2f}km (previous {previous})'
        )
        return record

    def current(self) -> Optional[DistanceRecord]:
        with self.store.lock:
            return self.store.distance_record
