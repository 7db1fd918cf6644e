"""
The single in-memory store behind the tracking engine.

Holds encounters, trackpoints, session tracks, the distance record, the
latest live snapshot and the id counters, all guarded by one re-entrant
lock. Ingest, every sweep pass and every query hold the lock for their
whole duration, so none of them ever observes a half-applied update.

Lookups used on the hot ingest path are served from indexes maintained
incrementally:
- hex -> id of its active encounter
- encounter id -> its trackpoints in insertion (= time) order
"""

import threading
from typing import Optional, List, Dict, Set, Iterable

from proximity_monitor.tracking.records import (
    Encounter,
    Trackpoint,
    SessionTrack,
    DistanceRecord,
    LiveAircraft,
)


class TrackingStore:
    """
    Process-wide tracking state, constructed explicitly and passed to the
    components that read or mutate it.
    """

    def __init__(self):
        self.lock = threading.RLock()

        self.encounters: Dict[int, Encounter] = {}
        self.trackpoints: List[Trackpoint] = []
        self.session_tracks: Dict[str, SessionTrack] = {}
        self.distance_record: Optional[DistanceRecord] = None
        self.live_aircraft: List[LiveAircraft] = []

        self.next_encounter_id = 1
        self.next_trackpoint_id = 1

        self._active_by_hex: Dict[str, int] = {}
        self._points_by_encounter: Dict[int, List[Trackpoint]] = {}
        self._hexes_seen: Set[str] = set()

    # -------------------------------------------------------------------------
    # Encounters and trackpoints
    # -------------------------------------------------------------------------

    def active_encounter(self, hex_code: str) -> Optional[Encounter]:
        with self.lock:
            encounter_id = self._active_by_hex.get(hex_code)
            if encounter_id is None:
                return None
            return self.encounters[encounter_id]

    def active_encounters(self) -> List[Encounter]:
        with self.lock:
            return [self.encounters[i] for i in self._active_by_hex.values()]

    def create_encounter(self, **fields) -> Encounter:
        """Assign the next id and register a new active encounter."""
        with self.lock:
            encounter = Encounter(id=self.next_encounter_id, **fields)
            self.next_encounter_id += 1
            self._register_encounter(encounter)
            return encounter

    def deactivate(self, encounter: Encounter, end_ts: Optional[float] = None) -> None:
        with self.lock:
            encounter.is_active = False
            if end_ts is not None:
                encounter.end_ts = end_ts
            if self._active_by_hex.get(encounter.hex) == encounter.id:
                del self._active_by_hex[encounter.hex]

    def add_trackpoint(self, encounter_id: int, **fields) -> Trackpoint:
        with self.lock:
            point = Trackpoint(
                id=self.next_trackpoint_id,
                encounter_id=encounter_id,
                **fields,
            )
            self.next_trackpoint_id += 1
            self._register_trackpoint(point)
            return point

    def last_trackpoint(self, encounter_id: int) -> Optional[Trackpoint]:
        with self.lock:
            points = self._points_by_encounter.get(encounter_id)
            return points[-1] if points else None

    def trackpoints_for(self, encounter_id: int) -> List[Trackpoint]:
        with self.lock:
            return list(self._points_by_encounter.get(encounter_id, ()))

    def point_count(self, encounter_id: int) -> int:
        with self.lock:
            return len(self._points_by_encounter.get(encounter_id, ()))

    def has_encounter_for(self, hex_code: str) -> bool:
        with self.lock:
            return hex_code in self._hexes_seen

    def replace_history(
        self,
        encounters: Iterable[Encounter],
        trackpoints: Iterable[Trackpoint],
        next_encounter_id: int,
        next_trackpoint_id: int,
    ) -> None:
        """
        Swap in a full encounter/trackpoint history (used on load).

        Indexes are rebuilt from scratch. Trackpoints are replayed in id
        order, which is their insertion (and time) order.
        """
        with self.lock:
            self.encounters = {}
            self.trackpoints = []
            self._active_by_hex = {}
            self._points_by_encounter = {}
            self._hexes_seen = set()

            for encounter in sorted(encounters, key=lambda e: e.id):
                self._register_encounter(encounter)
            for point in sorted(trackpoints, key=lambda t: t.id):
                self._register_trackpoint(point)

            self.next_encounter_id = next_encounter_id
            self.next_trackpoint_id = next_trackpoint_id

    def _register_encounter(self, encounter: Encounter) -> None:
        self.encounters[encounter.id] = encounter
        self._hexes_seen.add(encounter.hex)
        if encounter.is_active:
            previous = self._active_by_hex.get(encounter.hex)
            # Only one active encounter per hex; keep the newest.
            if previous is not None:
                self.encounters[previous].is_active = False
            self._active_by_hex[encounter.hex] = encounter.id

    def _register_trackpoint(self, point: Trackpoint) -> None:
        self.trackpoints.append(point)
        self._points_by_encounter.setdefault(point.encounter_id, []).append(point)
