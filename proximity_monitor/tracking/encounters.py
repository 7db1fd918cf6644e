"""
Encounter lifecycle tracking.

An encounter is one continuous stay of an aircraft inside the detection
zone around the observation point. Per hex the tracker moves between two
live states:

- none:   no active encounter; an in-zone reading opens a new one
- active: one open encounter; in-zone readings extend it and sample
          trackpoints, out-of-zone readings close it once its last
          trackpoint is older than the close timeout

Closing only flips the active flag. Encounters and their trackpoints are
kept for the lifetime of the process, and a hex may open a fresh
encounter later.

Aircraft that vanish from the feed never send the out-of-zone reading
that would close them, so cleanup_stale_encounters() sweeps those up.
"""

import logging
import time
from typing import Callable, Optional

from proximity_monitor.config import EncounterConfig
from proximity_monitor.tracking.records import AircraftReading, Encounter
from proximity_monitor.tracking.store import TrackingStore

logger = logging.getLogger(__name__)


class EncounterTracker:
    """
    Opens, extends and closes encounters for aircraft in the detection zone.

    Readings must already carry a position; the pipeline filters the rest.
    """

    def __init__(
        self,
        store: TrackingStore,
        settings: Optional[EncounterConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.settings = settings or EncounterConfig()
        self._clock = clock

    def ingest(self, reading: AircraftReading, distance: float) -> Optional[Encounter]:
        """
        Apply one reading at the given distance (km) from the observer.

        Returns the active encounter for the hex after the update, or None
        if the aircraft has no open encounter.
        """
        now = self._clock()

        with self.store.lock:
            existing = self.store.active_encounter(reading.hex)

            if distance <= self.settings.detection_radius_km:
                if existing is None:
                    return self._open(reading, distance, now)
                self._extend(existing, reading, distance, now)
                return existing

            if existing is not None:
                last_point = self.store.last_trackpoint(existing.id)
                if last_point is not None and now - last_point.ts >= self.settings.close_timeout:
                    # end_ts already holds the last in-zone update
                    self.store.deactivate(existing)
                    logger.info(f'Closed encounter #{existing.id} for {existing.hex}')
                    return None
            return existing

    def _open(self, reading: AircraftReading, distance: float, now: float) -> Encounter:
        altitude = reading.resolved_altitude
        encounter = self.store.create_encounter(
            hex=reading.hex,
            flight=reading.flight,
            start_ts=now,
            end_ts=now,
            min_dist=distance,
            min_alt=altitude,
            max_alt=altitude,
            is_active=True,
        )
        self._add_trackpoint(encounter, reading, now)

        logger.info(
            f'Started encounter #{encounter.id} for {reading.hex} '
            f'({reading.flight or "unknown"}) at {distance:.2f}km'
        )
        return encounter

    def _extend(
        self,
        encounter: Encounter,
        reading: AircraftReading,
        distance: float,
        now: float,
    ) -> None:
        encounter.end_ts = now
        encounter.min_dist = min(encounter.min_dist, distance)

        altitude = reading.resolved_altitude
        if altitude is not None:
            encounter.min_alt = altitude if encounter.min_alt is None else min(encounter.min_alt, altitude)
            encounter.max_alt = altitude if encounter.max_alt is None else max(encounter.max_alt, altitude)

        last_point = self.store.last_trackpoint(encounter.id)
        if last_point is None or now - last_point.ts >= self.settings.trackpoint_interval:
            self._add_trackpoint(encounter, reading, now)

    def _add_trackpoint(self, encounter: Encounter, reading: AircraftReading, now: float) -> None:
        self.store.add_trackpoint(
            encounter.id,
            ts=now,
            lat=reading.lat,
            lon=reading.lon,
            alt=reading.resolved_altitude,
            gs=reading.gs,
            track=reading.track,
        )

    def cleanup_stale_encounters(self) -> int:
        """
        Close active encounters whose last trackpoint is too old.

        An encounter with no trackpoint at all is treated as stale.
        Returns count of encounters closed; a second immediate call
        returns 0.
        """
        now = self._clock()
        count = 0

        with self.store.lock:
            for encounter in self.store.active_encounters():
                last_point = self.store.last_trackpoint(encounter.id)
                if last_point is None or now - last_point.ts >= self.settings.stale_timeout:
                    self.store.deactivate(encounter, end_ts=now)
                    count += 1

        if count:
            logger.info(f'Closed {count} stale encounter(s)')

        return count
