"""
Ephemeral per-aircraft position trails.

Every positioned aircraft gets a session track, whether or not it ever
enters the detection zone. Trails are bounded two ways:
- size: at most max_points per aircraft, oldest point evicted first
- age: tracks idle for longer than max_age are dropped by evict_stale()

Nothing here is persisted; trails are rebuilt from scratch on restart.

Memory budget: ~200 aircraft x 500 points x ~100 bytes = ~10MB max
"""

import logging
import time
from typing import Callable, List, Optional

from proximity_monitor.config import SessionConfig
from proximity_monitor.tracking.records import AircraftReading, SessionPoint, SessionTrack
from proximity_monitor.tracking.store import TrackingStore

logger = logging.getLogger(__name__)


class SessionTrackStore:
    """
    Thread-safe store of recent positions keyed by hex.

    Readers get detached copies, so a returned track never changes
    underneath them.
    """

    def __init__(
        self,
        store: TrackingStore,
        settings: Optional[SessionConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.settings = settings or SessionConfig()
        self._clock = clock

    def track(self, reading: AircraftReading) -> Optional[SessionTrack]:
        """
        Record a reading in the aircraft's trail.

        Points are sampled at most once per sample_interval. Returns the
        live (not copied) track for callers already holding the store lock,
        or None if the reading has no position.
        """
        if not reading.has_position():
            return None

        now = self._clock()

        with self.store.lock:
            tracks = self.store.session_tracks
            track = tracks.get(reading.hex)
            if track is None:
                track = SessionTrack(
                    hex=reading.hex,
                    flight=reading.flight,
                    first_seen=now,
                    last_update=now,
                )
                tracks[reading.hex] = track

            last_point = track.points[-1] if track.points else None
            if last_point is None or now - last_point.ts >= self.settings.sample_interval:
                track.points.append(SessionPoint(
                    ts=now,
                    lat=reading.lat,
                    lon=reading.lon,
                    alt=reading.resolved_altitude,
                    gs=reading.gs,
                    track=reading.track,
                ))
                track.last_update = now
                track.flight = reading.flight or track.flight

                # Cap memory per aircraft
                if len(track.points) > self.settings.max_points:
                    del track.points[0]

            return track

    def evict_stale(self) -> int:
        """
        Remove tracks not updated within max_age.

        Returns count of tracks removed.
        """
        cutoff = self._clock() - self.settings.max_age

        with self.store.lock:
            tracks = self.store.session_tracks
            stale = [hex_code for hex_code, track in tracks.items() if track.last_update < cutoff]
            for hex_code in stale:
                del tracks[hex_code]

        if stale:
            logger.info(f'Evicted {len(stale)} stale session track(s)')

        return len(stale)

    def get(self, hex_code: str) -> Optional[SessionTrack]:
        """Get a copy of one aircraft's trail, or None if not tracked."""
        with self.store.lock:
            track = self.store.session_tracks.get(hex_code.lower())
            return track.snapshot() if track else None

    def all(self) -> List[SessionTrack]:
        """Get copies of every trail currently held."""
        with self.store.lock:
            return [track.snapshot() for track in self.store.session_tracks.values()]

    def __len__(self) -> int:
        with self.store.lock:
            return len(self.store.session_tracks)
