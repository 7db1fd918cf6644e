from proximity_monitor.ingestion import parse_aircraft_payload
from proximity_monitor.tracking import AircraftReading


def test_parse_payload_skips_malformed_entries():
    readings = parse_aircraft_payload({
        'aircraft': [
            {'hex': '4ca7b5', 'lat': 59.3, 'lon': 18.1},
            {'hex': ''},
            {'hex': 12345},
            None,
            {'hex': ' 4CA7B6 '},
        ],
    })

    assert [r.hex for r in readings] == ['4ca7b5', '4ca7b6']
    assert readings[0].has_position()
    assert not readings[1].has_position()


def test_parse_payload_rejects_bad_documents():
    assert parse_aircraft_payload(None) == []
    assert parse_aircraft_payload({'now': 1.0}) == []
    assert parse_aircraft_payload({'aircraft': {'hex': 'abc123'}}) == []


def test_numeric_fields_are_coerced():
    reading = AircraftReading.from_dict({
        'hex': 'abc123',
        'lat': '59.5',
        'lon': 18,
        'alt_baro': 'ground',
        'gs': True,
        'messages': '42',
    })

    assert reading.lat == 59.5
    assert reading.lon == 18.0
    assert reading.alt_baro is None
    assert reading.gs is None
    assert reading.messages == 42
    assert reading.resolved_altitude is None
