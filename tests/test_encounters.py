from proximity_monitor.tracking import AircraftReading

from conftest import START_TS, reading_at


def test_in_zone_reading_opens_encounter_with_trackpoint(encounters, store):
    encounter = encounters.ingest(reading_at('abc123', 8.2, flight='SAS123', altitude=3500), 8.2)

    assert encounter.id == 1
    assert encounter.hex == 'abc123'
    assert encounter.flight == 'SAS123'
    assert encounter.start_ts == START_TS
    assert encounter.end_ts == START_TS
    assert encounter.min_dist == 8.2
    assert encounter.min_alt == 3500
    assert encounter.max_alt == 3500
    assert encounter.is_active
    assert store.point_count(1) == 1


def test_out_of_zone_reading_without_encounter_is_ignored(encounters, store):
    assert encounters.ingest(reading_at('abc123', 15.0), 15.0) is None
    assert store.encounters == {}
    assert store.trackpoints == []


def test_radius_boundary_is_inside(encounters):
    assert encounters.ingest(reading_at('abc123', 10.0), 10.0) is not None


def test_encounter_lifecycle_closes_at_last_trackpoint(encounters, store, clock):
    encounters.ingest(reading_at('abc123', 8.2), 8.2)
    clock.advance(6)
    encounter = encounters.ingest(reading_at('abc123', 7.9), 7.9)

    assert encounter.min_dist == 7.9
    assert store.point_count(encounter.id) == 2
    last_ts = store.last_trackpoint(encounter.id).ts

    for _ in range(61):
        clock.advance(1)
        encounters.ingest(reading_at('abc123', 12.0), 12.0)

    assert not encounter.is_active
    assert encounter.end_ts == last_ts
    assert store.active_encounter('abc123') is None
    assert len(store.encounters) == 1


def test_out_of_zone_keeps_encounter_open_before_timeout(encounters, clock):
    encounter = encounters.ingest(reading_at('abc123', 5.0), 5.0)
    clock.advance(59)

    assert encounters.ingest(reading_at('abc123', 12.0), 12.0) is encounter
    assert encounter.is_active

    clock.advance(1)
    assert encounters.ingest(reading_at('abc123', 12.0), 12.0) is None
    assert not encounter.is_active


def test_min_dist_is_minimum_of_in_zone_readings(encounters, clock):
    for distance in (9.0, 4.5, 6.0, 3.2, 8.8):
        encounters.ingest(reading_at('abc123', distance), distance)
        clock.advance(1)

    encounter = encounters.store.active_encounter('abc123')
    assert encounter.min_dist == 3.2


def test_trackpoints_sampled_at_interval(encounters, store, clock):
    encounter = encounters.ingest(reading_at('abc123', 5.0), 5.0)
    for _ in range(12):
        clock.advance(1)
        encounters.ingest(reading_at('abc123', 5.0), 5.0)

    points = store.trackpoints_for(encounter.id)
    assert [p.ts - START_TS for p in points] == [0, 5, 10]
    assert encounter.end_ts == START_TS + 12


def test_altitude_falls_back_to_baro_and_tracks_extrema(encounters, store, clock):
    encounter = encounters.ingest(reading_at('abc123', 5.0, alt_baro=2000), 5.0)
    clock.advance(5)
    encounters.ingest(reading_at('abc123', 5.0, altitude=3000, alt_baro=100), 5.0)
    clock.advance(5)
    encounters.ingest(reading_at('abc123', 5.0), 5.0)

    assert encounter.min_alt == 2000
    assert encounter.max_alt == 3000
    assert [p.alt for p in store.trackpoints_for(encounter.id)] == [2000, 3000, None]


def test_encounter_without_altitude_picks_up_first_value(encounters, clock):
    encounter = encounters.ingest(reading_at('abc123', 5.0), 5.0)
    assert encounter.min_alt is None

    clock.advance(1)
    encounters.ingest(reading_at('abc123', 5.0, altitude=1200), 5.0)
    assert encounter.min_alt == 1200
    assert encounter.max_alt == 1200


def test_reentry_after_close_opens_new_encounter(encounters, store, clock):
    first = encounters.ingest(reading_at('abc123', 5.0), 5.0)
    clock.advance(60)
    encounters.ingest(reading_at('abc123', 20.0), 20.0)
    assert not first.is_active

    clock.advance(10)
    second = encounters.ingest(reading_at('abc123', 5.0), 5.0)

    assert second.id == 2
    assert second.is_active
    assert store.active_encounters() == [second]
    assert store.trackpoints_for(2)[0].id == 2


def test_one_active_encounter_per_hex(encounters, store, clock):
    encounters.ingest(reading_at('abc123', 5.0), 5.0)
    encounters.ingest(reading_at('def456', 5.0), 5.0)
    for _ in range(10):
        clock.advance(3)
        encounters.ingest(reading_at('abc123', 4.0), 4.0)
        encounters.ingest(reading_at('def456', 6.0), 6.0)

    active = store.active_encounters()
    assert sorted(e.hex for e in active) == ['abc123', 'def456']
    assert len(store.encounters) == 2


def test_flight_label_is_trimmed():
    reading = AircraftReading.from_dict({'hex': 'ABC123', 'flight': 'SAS123  ', 'lat': 59.3, 'lon': 18.2})
    assert reading.hex == 'abc123'
    assert reading.flight == 'SAS123'

    blank = AircraftReading.from_dict({'hex': 'abc123', 'flight': '   '})
    assert blank.flight is None


def test_stale_cleanup_closes_silent_encounters(encounters, clock):
    quiet = encounters.ingest(reading_at('abc123', 5.0), 5.0)
    clock.advance(200)
    busy = encounters.ingest(reading_at('def456', 5.0), 5.0)
    clock.advance(100)

    assert encounters.cleanup_stale_encounters() == 1
    assert not quiet.is_active
    assert quiet.end_ts == clock.now
    assert busy.is_active


def test_stale_cleanup_is_idempotent(encounters, clock):
    encounters.ingest(reading_at('abc123', 5.0), 5.0)
    clock.advance(301)

    assert encounters.cleanup_stale_encounters() == 1
    assert encounters.cleanup_stale_encounters() == 0


def test_stale_cleanup_closes_encounter_without_trackpoints(encounters, store, clock):
    orphan = store.create_encounter(
        hex='abc123', flight=None, start_ts=clock.now, end_ts=clock.now,
        min_dist=5.0, is_active=True,
    )

    assert encounters.cleanup_stale_encounters() == 1
    assert not orphan.is_active
