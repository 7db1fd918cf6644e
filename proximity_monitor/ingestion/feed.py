"""
dump1090 aircraft.json decoding.

The poller that fetches the document lives outside this package; it hands
over the already-decoded JSON, which looks like:

    {
        "now": 1714765200.1,
        "messages": 123456,
        "aircraft": [
            {"hex": "4ca7b5", "flight": "RYR1AB  ", "lat": 59.3, "lon": 18.1,
             "alt_baro": 3500, "gs": 210.4, "track": 92.1, "seen": 0.4, ...},
            ...
        ]
    }

Per-aircraft fields used (all optional except hex):
    hex, flight, lat, lon, altitude, alt_baro, gs, track, seen,
    baro_rate, mach, tas, ias, nav_altitude_mcp, nav_qnh, nav_heading,
    rssi, messages
"""

import logging
from typing import Any, Dict, List

from proximity_monitor.tracking.records import AircraftReading

logger = logging.getLogger(__name__)


def parse_aircraft_payload(payload: Dict[str, Any]) -> List[AircraftReading]:
    """
    Decode every aircraft entry in a dump1090 document.

    Entries that are not objects or carry no hex are skipped. Readings
    without a position are kept; the pipeline drops them.
    """
    if not isinstance(payload, dict):
        logger.warning(f'Ignoring feed payload of type {type(payload).__name__}')
        return []

    entries = payload.get('aircraft') or []
    if not isinstance(entries, list):
        logger.warning('Feed payload has no aircraft list')
        return []

    readings = []
    for entry in entries:
        reading = AircraftReading.from_dict(entry)
        if reading is not None:
            readings.append(reading)

    skipped = len(entries) - len(readings)
    if skipped:
        logger.debug(f'Skipped {skipped} malformed aircraft entries')

    return readings
