"""
Proximity Monitor Package.

Aircraft proximity tracking engine built on SQLAlchemy and python-dotenv.

Modules:
    tracking/     In-memory store, encounter state machine, session tracks,
                  distance record
    ingestion/    dump1090 payload parsing and the ingest/sweep pipeline
    models/       SQLAlchemy ORM models for durable snapshots
    persistence.py  Snapshot and rehydration of tracked state
    queries.py    Read-only projections (summaries, GeoJSON, stats)
    geo.py        Great-circle distance
    config.py     Centralized configuration from environment variables
    app.py        Wiring factory for a running monitor
"""

__version__ = '1.0.0'
