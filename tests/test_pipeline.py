from proximity_monitor.ingestion import IngestionPipeline
from proximity_monitor.persistence import PersistenceManager
from proximity_monitor.tracking import AircraftReading, EncounterTracker, TrackingStore

from conftest import OBSERVER, north_of_observer, reading_at


def test_reading_without_position_is_dropped(pipeline, store):
    assert pipeline.ingest(AircraftReading(hex='abc123', altitude=3000)) is None
    assert pipeline.stats['dropped_count'] == 1
    assert store.session_tracks == {}
    assert store.distance_record is None


def test_zero_coordinates_are_a_position(pipeline, store):
    assert pipeline.ingest(AircraftReading(hex='abc123', lat=0.0, lon=0.0)) is not None
    assert 'abc123' in store.session_tracks


def test_ingest_feeds_every_tracker(pipeline, store):
    distance = pipeline.ingest(reading_at('abc123', 7.5))

    assert round(distance, 6) == 7.5
    assert store.active_encounter('abc123') is not None
    assert 'abc123' in store.session_tracks
    assert store.distance_record.hex == 'abc123'
    assert pipeline.stats['ingest_count'] == 1


def test_ingest_payload(pipeline, store):
    payload = {
        'now': 1714765200.1,
        'aircraft': [
            {'hex': 'ABC123', 'flight': 'SAS1  ', 'lat': north_of_observer(30.0), 'lon': OBSERVER[1],
             'alt_baro': 'ground', 'seen': 0.4},
            {'hex': 'def456', 'lat': north_of_observer(4.0), 'lon': OBSERVER[1], 'alt_baro': 1500},
            {'hex': 'nopos1', 'alt_baro': 30000},
            {'flight': 'NOHEX'},
            'garbage',
        ],
    }

    assert pipeline.ingest_payload(payload) == 2

    live = [a.to_dict() for a in store.live_aircraft]
    assert [a['hex'] for a in live] == ['def456', 'abc123']
    assert live[0]['distance_km'] == 4.0
    assert live[0]['altitude'] == 1500
    assert live[0]['seen_seconds'] == 0.0
    assert live[1]['altitude'] is None
    assert live[1]['flight'] == 'SAS1'
    assert live[1]['seen_seconds'] == 0.4
    assert pipeline.stats['dropped_count'] == 1


def test_payload_replaces_live_snapshot(pipeline, queries):
    pipeline.ingest_payload({'aircraft': [{'hex': 'abc123', 'lat': 59.3, 'lon': 18.2}]})
    pipeline.ingest_payload({'aircraft': []})

    assert queries.get_live_aircraft() == []
    assert pipeline.stats['payload_count'] == 2


def test_cleanup_flushes_snapshot(pipeline, persistence, clock):
    pipeline.ingest(reading_at('abc123', 5.0))
    assert pipeline.cleanup_stale_encounters() == 0
    assert persistence.stats['snapshot_count'] == 0

    clock.advance(300)
    assert pipeline.cleanup_stale_encounters() == 1

    encounters, _, _, _ = persistence.load_history()
    assert [e.is_active for e in encounters] == [False]


def test_stop_writes_final_snapshot(pipeline, persistence):
    pipeline.ingest(reading_at('abc123', 5.0))
    pipeline.stop()

    encounters, trackpoints, next_encounter_id, _ = persistence.load_history()
    assert len(encounters) == 1
    assert len(trackpoints) == 1
    assert next_encounter_id == 2


def test_background_sweeps_start_and_stop(pipeline):
    pipeline.start_background()
    assert pipeline.stats['running'] is True
    assert len(pipeline._threads) == 3

    pipeline.start_background()
    assert len(pipeline._threads) == 3

    pipeline.stop()
    assert pipeline.stats['running'] is False
    assert pipeline._threads == []


def test_pipeline_without_persistence(store, encounters, sessions, records):
    pipeline = IngestionPipeline(
        store=store,
        observer_location=OBSERVER,
        encounters=encounters,
        sessions=sessions,
        records=records,
    )
    pipeline.ingest(reading_at('abc123', 5.0))

    assert pipeline.snapshot() is False
    pipeline.stop()


def test_restart_continues_ids(pipeline, db_url, clock, encounter_settings):
    pipeline.ingest(reading_at('abc123', 5.0))
    pipeline.stop()

    restored = TrackingStore()
    PersistenceManager.from_url(db_url, clock=clock).load_into(restored)
    tracker = EncounterTracker(restored, encounter_settings, clock=clock)

    clock.advance(400)
    assert tracker.cleanup_stale_encounters() == 1
    tracker.ingest(reading_at('abc123', 5.0), 5.0)

    assert sorted(restored.encounters) == [1, 2]
    assert [t.id for t in restored.trackpoints] == [1, 2]


def test_directly_built_reading_is_normalized(pipeline, store, queries):
    pipeline.ingest(reading_at(' ABC123 ', 5.0, flight='SAS123  '))

    encounter = store.active_encounter('abc123')
    assert encounter.hex == 'abc123'
    assert encounter.flight == 'SAS123'
    assert queries.get_session_track_geojson('ABC123') is not None
    assert queries.get_session_track('abc123')['flight'] == 'SAS123'
