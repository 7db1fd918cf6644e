"""
Proximity Monitor wiring.

Builds a running monitor from configuration:
- Logging
- Data directory and database schema
- Tracking store rehydrated from the last snapshot
- Trackers, ingestion pipeline and query service
- Background sweeps (stale encounters, session eviction, snapshots)

Usage:
    from proximity_monitor.app import create_monitor

    monitor = create_monitor()
    monitor.pipeline.ingest_payload(payload)   # from the external poller
    monitor.queries.get_stats()
    monitor.shutdown()
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

from proximity_monitor.config import AppConfig, config as default_config
from proximity_monitor.ingestion import IngestionPipeline
from proximity_monitor.persistence import PersistenceManager
from proximity_monitor.queries import QueryService
from proximity_monitor.tracking import (
    TrackingStore,
    EncounterTracker,
    SessionTrackStore,
    DistanceRecordTracker,
)

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


@dataclass
class Monitor:
    """A wired monitor instance."""
    store: TrackingStore
    persistence: PersistenceManager
    pipeline: IngestionPipeline
    queries: QueryService

    def shutdown(self) -> None:
        """Stop sweeps and flush a final snapshot."""
        self.pipeline.stop()


def create_monitor(
    cfg: Optional[AppConfig] = None,
    clock: Callable[[], float] = time.time,
    start_background: bool = True,
) -> Monitor:
    """
    Factory for a monitor instance.

    Args:
        cfg: Application configuration (module defaults if None)
        clock: Time source shared by every component
        start_background: Whether to start the background sweeps.
                          Set to False for testing.

    Raises:
        OSError if the data directory cannot be created.
        sqlalchemy.exc.SQLAlchemyError if the schema cannot be created.
    """
    cfg = cfg or default_config
    configure_logging(cfg.debug)

    if cfg.database.is_sqlite:
        os.makedirs(cfg.database.data_dir, exist_ok=True)

    logger.info('Initializing database...')
    persistence = PersistenceManager.from_url(cfg.database.url, echo=cfg.debug, clock=clock)
    persistence.init_schema()

    store = TrackingStore()
    persistence.load_into(store)

    pipeline = IngestionPipeline(
        store=store,
        observer_location=cfg.observer.location,
        encounters=EncounterTracker(store, cfg.encounters, clock=clock),
        sessions=SessionTrackStore(store, cfg.sessions, clock=clock),
        records=DistanceRecordTracker(store, clock=clock),
        persistence=persistence,
        snapshot_interval=cfg.database.snapshot_interval,
    )
    queries = QueryService(store, cfg.queries, clock=clock)

    if start_background:
        pipeline.start_background()

    logger.info(
        f'Monitoring ({cfg.observer.latitude:.6f}, {cfg.observer.longitude:.6f}) '
        f'with detection radius {cfg.encounters.detection_radius_km}km'
    )

    return Monitor(
        store=store,
        persistence=persistence,
        pipeline=pipeline,
        queries=queries,
    )
