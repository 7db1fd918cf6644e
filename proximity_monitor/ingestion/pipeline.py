"""
Ingestion pipeline - drives the tracking engine from feed readings.

Each reading is processed to completion before the next one:
1. Filter: readings without a position are dropped
2. Measure: great-circle distance from the observation point
3. Session: append to the aircraft's ephemeral trail
4. Record: replace the distance record if strictly farther
5. Encounter: open, extend or close the aircraft's encounter

Steps 3-5 run under the store lock as one unit. A new distance record is
written to storage after the lock is released.

Three sweeps run on their own timers when started in the background:
- stale encounter cleanup (flushes a snapshot when it closes anything)
- session track eviction
- periodic persistence snapshot
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from proximity_monitor.geo import distance_km
from proximity_monitor.ingestion.feed import parse_aircraft_payload
from proximity_monitor.persistence import PersistenceManager
from proximity_monitor.tracking.distance_record import DistanceRecordTracker
from proximity_monitor.tracking.encounters import EncounterTracker
from proximity_monitor.tracking.records import AircraftReading, LiveAircraft
from proximity_monitor.tracking.session_tracks import SessionTrackStore
from proximity_monitor.tracking.store import TrackingStore

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """
    Single entry point for readings and owner of the background sweeps.

    Can run its sweeps as background threads; ingest() itself is always
    called by the external poller.
    """

    def __init__(
        self,
        store: TrackingStore,
        observer_location: Tuple[float, float],
        encounters: EncounterTracker,
        sessions: SessionTrackStore,
        records: DistanceRecordTracker,
        persistence: Optional[PersistenceManager] = None,
        snapshot_interval: float = 30.0,
    ):
        """
        Initialize the ingestion pipeline.

        Args:
            store: Shared tracking state
            observer_location: (lat, lon) tuple for distance calculations
            encounters: Encounter state machine
            sessions: Ephemeral session track store
            records: Distance record tracker
            persistence: Durable storage; None keeps everything in memory
            snapshot_interval: Seconds between persistence snapshots
        """
        self.store = store
        self.observer_location = observer_location
        self.encounters = encounters
        self.sessions = sessions
        self.records = records
        self.persistence = persistence
        self.snapshot_interval = snapshot_interval

        # Background state
        self._running = False
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []
        self._record_flush_lock = threading.Lock()

        # Statistics
        self._ingest_count = 0
        self._dropped_count = 0
        self._payload_count = 0
        self._sweep_errors = 0

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def ingest(self, reading: AircraftReading) -> Optional[float]:
        """
        Process one reading.

        Returns the distance in km, or None if the reading had no position.
        """
        if not reading.has_position():
            self._dropped_count += 1
            return None

        distance = distance_km(
            self.observer_location[0], self.observer_location[1],
            reading.lat, reading.lon,
        )

        with self.store.lock:
            self.sessions.track(reading)
            new_record = self.records.consider(reading, distance)
            self.encounters.ingest(reading, distance)
            self._ingest_count += 1

        logger.debug(f'Ingested {reading.hex} at {distance:.2f}km')

        if new_record is not None:
            self._flush_distance_record()

        return distance

    def ingest_payload(self, payload: Dict[str, Any]) -> int:
        """
        Process every aircraft in a decoded dump1090 document.

        Replaces the live snapshot with this payload's positioned aircraft,
        closest first. Returns count of readings ingested.
        """
        live = []
        for reading in parse_aircraft_payload(payload):
            distance = self.ingest(reading)
            if distance is None:
                continue
            live.append(LiveAircraft(
                hex=reading.hex,
                flight=reading.flight,
                lat=reading.lat,
                lon=reading.lon,
                altitude=reading.resolved_altitude,
                gs=reading.gs,
                track=reading.track,
                distance_km=round(distance, 2),
                seen_seconds=reading.seen or 0.0,
            ))

        live.sort(key=lambda a: a.distance_km)

        with self.store.lock:
            self.store.live_aircraft = live
            self._payload_count += 1

        logger.debug(f'Processed payload with {len(live)} positioned aircraft')
        return len(live)

    def _flush_distance_record(self) -> None:
        # Always write the latest record so concurrent flushes cannot regress it
        with self._record_flush_lock:
            record = self.records.current()
            if record is not None and self.persistence is not None:
                self.persistence.save_distance_record(record)

    # -------------------------------------------------------------------------
    # Sweeps
    # -------------------------------------------------------------------------

    def cleanup_stale_encounters(self) -> int:
        """Close stale encounters; snapshot immediately if any were closed."""
        count = self.encounters.cleanup_stale_encounters()
        if count:
            self.snapshot()
        return count

    def evict_session_tracks(self) -> int:
        return self.sessions.evict_stale()

    def snapshot(self) -> bool:
        """Write encounters and trackpoints to durable storage."""
        if self.persistence is None:
            return False
        return self.persistence.save_history(self.store)

    def _sweeps(self) -> List[Tuple[str, float, Callable[[], Any]]]:
        return [
            ('stale-encounters', self.encounters.settings.cleanup_interval, self.cleanup_stale_encounters),
            ('session-eviction', self.sessions.settings.eviction_interval, self.evict_session_tracks),
            ('snapshot', self.snapshot_interval, self.snapshot),
        ]

    def _run_periodic(self, name: str, interval: float, task: Callable[[], Any]) -> None:
        """Run task every interval seconds until stopped."""
        while not self._stop_event.wait(interval):
            try:
                task()
            except Exception as e:
                self._sweep_errors += 1
                logger.error(f'{name} sweep failed: {e}')

    def start_background(self) -> None:
        """Start all sweeps in background threads."""
        if self._running:
            logger.warning('Sweeps already running')
            return

        self._stop_event.clear()
        self._running = True

        for name, interval, task in self._sweeps():
            thread = threading.Thread(
                target=self._run_periodic,
                args=(name, interval, task),
                name=f'sweep-{name}',
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
            logger.info(f'Started {name} sweep (interval={interval}s)')

    def stop(self) -> None:
        """
        Stop background sweeps and flush a final snapshot.

        A snapshot already in progress is allowed to finish.
        """
        self._running = False
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=5)
        self._threads = []

        self.snapshot()
        logger.info('Pipeline stopped')

    @property
    def stats(self) -> dict:
        """Get ingestion statistics."""
        return {
            'ingest_count': self._ingest_count,
            'dropped_count': self._dropped_count,
            'payload_count': self._payload_count,
            'sweep_errors': self._sweep_errors,
            'running': self._running,
        }
