"""
Read-only projections over the tracking state.

Provides:
- Paginated encounter summaries
- Single encounter with its trackpoints
- GeoJSON LineString features for encounters and session tracks
- Session track listings
- Aggregate statistics
- The distance record and the latest live snapshot

Every call holds the store lock only while copying what it needs, and
returns plain dicts ready for JSON serialization. Unknown ids or hexes
yield None rather than an error.
"""

import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from proximity_monitor.config import QueryConfig
from proximity_monitor.tracking.store import TrackingStore

Coordinate = Tuple[float, float, Optional[float]]


def _line_feature(coordinates: Sequence[Coordinate], properties: dict) -> dict:
    """GeoJSON Feature with a LineString of [lon, lat, alt] triples."""
    return {
        'type': 'Feature',
        'geometry': {
            'type': 'LineString',
            'coordinates': [list(c) for c in coordinates],
        },
        'properties': properties,
    }


def local_midnight(timestamp: float) -> float:
    """Unix timestamp of local midnight on the day containing timestamp."""
    day = datetime.fromtimestamp(timestamp).replace(hour=0, minute=0, second=0, microsecond=0)
    return day.timestamp()


class QueryService:
    """Answers external read requests from the shared store."""

    def __init__(
        self,
        store: TrackingStore,
        settings: Optional[QueryConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.settings = settings or QueryConfig()
        self._clock = clock

    # -------------------------------------------------------------------------
    # Encounters
    # -------------------------------------------------------------------------

    def get_encounters(self, limit: int = 100, offset: int = 0) -> List[dict]:
        """
        Encounter summaries, newest first.

        limit is clamped to [0, max_page_size]; a negative offset is
        treated as 0.
        """
        limit = max(0, min(limit, self.settings.max_page_size))
        offset = max(0, offset)

        with self.store.lock:
            ordered = sorted(
                self.store.encounters.values(),
                key=lambda e: (e.start_ts, e.id),
                reverse=True,
            )
            page = ordered[offset:offset + limit]

            return [
                {
                    'id': e.id,
                    'hex': e.hex,
                    'flight': e.flight,
                    'start_ts': e.start_ts,
                    'end_ts': e.end_ts,
                    'duration_seconds': e.duration_seconds,
                    'min_dist': e.min_dist,
                    'min_alt': e.min_alt,
                    'max_alt': e.max_alt,
                    'is_active': e.is_active,
                    'point_count': self.store.point_count(e.id),
                }
                for e in page
            ]

    def get_encounter(self, encounter_id: int) -> Optional[dict]:
        """Encounter plus its trackpoints in time order, or None."""
        with self.store.lock:
            encounter = self.store.encounters.get(encounter_id)
            if encounter is None:
                return None
            points = sorted(self.store.trackpoints_for(encounter_id), key=lambda t: t.ts)

            return {
                'encounter': encounter.to_dict(),
                'trackpoints': [t.to_dict() for t in points],
                'point_count': len(points),
            }

    def get_encounter_geojson(self, encounter_id: int) -> Optional[dict]:
        """Encounter path as a GeoJSON Feature, or None if unknown/empty."""
        data = self.get_encounter(encounter_id)
        if not data or not data['trackpoints']:
            return None

        encounter = data['encounter']
        coordinates = [(t['lon'], t['lat'], t['alt']) for t in data['trackpoints']]

        return _line_feature(coordinates, {
            'hex': encounter['hex'],
            'flight': encounter['flight'],
            'start_ts': encounter['start_ts'],
            'end_ts': encounter['end_ts'],
            'min_alt': encounter['min_alt'],
            'max_alt': encounter['max_alt'],
            'min_dist': encounter['min_dist'],
            'is_session_track': False,
            'point_count': len(coordinates),
        })

    # -------------------------------------------------------------------------
    # Session tracks
    # -------------------------------------------------------------------------

    def get_session_tracks(self) -> List[dict]:
        """Summaries of every aircraft in the current session."""
        with self.store.lock:
            return [t.to_summary_dict() for t in self.store.session_tracks.values()]

    def get_session_track(self, hex_code: str) -> Optional[dict]:
        with self.store.lock:
            track = self.store.session_tracks.get(hex_code.lower())
            return track.to_dict() if track else None

    def get_session_track_geojson(self, hex_code: str) -> Optional[dict]:
        """Session trail as a GeoJSON Feature, or None if unknown/empty."""
        hex_code = hex_code.lower()

        with self.store.lock:
            track = self.store.session_tracks.get(hex_code)
            if track is None or not track.points:
                return None

            coordinates = [(p.lon, p.lat, p.alt) for p in track.points]
            return _line_feature(coordinates, {
                'hex': track.hex,
                'flight': track.flight,
                'start_ts': track.first_seen,
                'end_ts': track.last_update,
                'is_session_track': True,
                'has_persistent_encounter': self.store.has_encounter_for(hex_code),
                'point_count': len(coordinates),
            })

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def get_distance_record(self) -> Optional[dict]:
        with self.store.lock:
            record = self.store.distance_record
            return record.to_dict() if record else None

    def get_live_aircraft(self) -> List[dict]:
        """Positioned aircraft from the latest payload, closest first."""
        with self.store.lock:
            return [a.to_dict() for a in self.store.live_aircraft]

    def get_stats(self) -> Dict[str, object]:
        """Counts across encounters, trackpoints and session tracks."""
        today_start = local_midnight(self._clock())

        with self.store.lock:
            encounters = self.store.encounters.values()
            return {
                'total_encounters': len(encounters),
                'active_encounters': sum(1 for e in encounters if e.is_active),
                'total_trackpoints': len(self.store.trackpoints),
                'today_encounters': sum(1 for e in encounters if e.start_ts >= today_start),
                'session_aircraft': len(self.store.session_tracks),
                'distance_record': self.get_distance_record(),
            }
