"""
Durable snapshots of the tracking state.

Three independently loadable/saveable units:
1. Encounters + their next-id counter
2. Trackpoints + their next-id counter
3. The distance record (with the time it was last saved)

Units 1 and 2 are written together every snapshot interval; unit 3 is
written whenever the record changes. A crash between two snapshots loses
at most one interval of encounter history; the distance record is never
behind.

Storage failures are logged and swallowed here. The in-memory store stays
authoritative for the running process and the next scheduled snapshot is
the retry.
"""

import logging
import time
from typing import Callable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from proximity_monitor.models import (
    EncounterRow,
    TrackpointRow,
    DistanceRecordRow,
    TrackingCounter,
    create_db_engine,
    make_session_factory,
    session_scope,
    init_db,
)
from proximity_monitor.models.counter import ENCOUNTERS, TRACKPOINTS
from proximity_monitor.models.distance_record import SINGLETON_ID
from proximity_monitor.tracking.records import Encounter, Trackpoint, DistanceRecord
from proximity_monitor.tracking.store import TrackingStore

logger = logging.getLogger(__name__)

# Errors that mean "stored state unusable" rather than a programming bug
LOAD_ERRORS = (SQLAlchemyError, ValueError, TypeError)


class PersistenceManager:
    """
    Loads tracking state on startup and writes snapshots back.

    Rows are copied out of the store while holding its lock; all database
    I/O happens after the lock is released.
    """

    def __init__(self, engine: Engine, clock: Callable[[], float] = time.time):
        self.engine = engine
        self._session_factory = make_session_factory(engine)
        self._clock = clock

        # Statistics
        self._snapshot_count = 0
        self._error_count = 0
        self._last_snapshot_time: Optional[float] = None

    @classmethod
    def from_url(cls, url: str, echo: bool = False, **kwargs) -> 'PersistenceManager':
        """Create a manager with its own engine for the given database URL."""
        return cls(create_db_engine(url, echo=echo), **kwargs)

    def init_schema(self) -> None:
        """Create tables if missing. Failures propagate to the caller."""
        init_db(self.engine)

    def _insert(self, table):
        """Dialect-specific INSERT supporting ON CONFLICT clauses."""
        if self.engine.dialect.name == 'postgresql':
            return pg_insert(table)
        return sqlite_insert(table)

    def _upsert(self, table, key: str = 'id'):
        """INSERT that overwrites every non-key column on conflict."""
        stmt = self._insert(table)
        return stmt.on_conflict_do_update(
            index_elements=[key],
            set_={
                column.name: stmt.excluded[column.name]
                for column in table.columns
                if column.name != key
            },
        )

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def load_history(self) -> Tuple[List[Encounter], List[Trackpoint], int, int]:
        """
        Read encounters, trackpoints and their next-id counters.

        Returns empty collections and fresh counters if nothing was stored
        or the stored state cannot be read.
        """
        try:
            with session_scope(self._session_factory) as session:
                encounters = [
                    row.to_record()
                    for row in session.scalars(select(EncounterRow).order_by(EncounterRow.id))
                ]
                trackpoints = [
                    row.to_record()
                    for row in session.scalars(select(TrackpointRow).order_by(TrackpointRow.id))
                ]
                counters = {
                    row.name: row.next_id
                    for row in session.scalars(select(TrackingCounter))
                }
        except LOAD_ERRORS as e:
            logger.warning(f'Could not load encounter history, starting fresh: {e}')
            return [], [], 1, 1

        next_encounter_id = max(
            counters.get(ENCOUNTERS) or 1,
            max((e.id for e in encounters), default=0) + 1,
        )
        next_trackpoint_id = max(
            counters.get(TRACKPOINTS) or 1,
            max((t.id for t in trackpoints), default=0) + 1,
        )

        return encounters, trackpoints, next_encounter_id, next_trackpoint_id

    def load_distance_record(self) -> Optional[DistanceRecord]:
        """Read the stored distance record, or None if absent/unreadable."""
        try:
            with session_scope(self._session_factory) as session:
                row = session.get(DistanceRecordRow, SINGLETON_ID)
                return row.to_record() if row else None
        except LOAD_ERRORS as e:
            logger.warning(f'Could not load distance record, starting fresh: {e}')
            return None

    def load_into(self, store: TrackingStore) -> None:
        """Rehydrate the store from durable storage."""
        encounters, trackpoints, next_encounter_id, next_trackpoint_id = self.load_history()
        record = self.load_distance_record()

        with store.lock:
            store.replace_history(encounters, trackpoints, next_encounter_id, next_trackpoint_id)
            store.distance_record = record

        logger.info(f'Loaded {len(encounters)} encounters, {len(trackpoints)} trackpoints')
        if record:
            logger.info(f'Loaded distance record {record.hex} at {record.distance_km:.2f}km')

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def save_history(self, store: TrackingStore) -> bool:
        """
        Write the full encounter and trackpoint collections plus counters.

        Every row is upserted by id, so rows left behind by an earlier run
        under a reused id are overwritten. Returns False on failure.
        """
        with store.lock:
            encounter_rows = [EncounterRow.values_from(e) for e in store.encounters.values()]
            trackpoint_rows = [TrackpointRow.values_from(t) for t in store.trackpoints]
            counters = {
                ENCOUNTERS: store.next_encounter_id,
                TRACKPOINTS: store.next_trackpoint_id,
            }

        now = self._clock()

        try:
            with session_scope(self._session_factory) as session:
                if encounter_rows:
                    session.execute(self._upsert(EncounterRow.__table__), encounter_rows)

                if trackpoint_rows:
                    session.execute(self._upsert(TrackpointRow.__table__), trackpoint_rows)

                session.execute(self._upsert(TrackingCounter.__table__, key='name'), [
                    {'name': name, 'next_id': next_id, 'saved_at': now}
                    for name, next_id in counters.items()
                ])
        except SQLAlchemyError as e:
            self._error_count += 1
            logger.error(f'Snapshot failed: {e}')
            return False

        self._snapshot_count += 1
        self._last_snapshot_time = now
        logger.debug(f'Snapshot saved: {len(encounter_rows)} encounters, {len(trackpoint_rows)} trackpoints')
        return True

    def save_distance_record(self, record: DistanceRecord) -> bool:
        """Write the distance record immediately. Returns False on failure."""
        values = DistanceRecordRow.values_from(record, saved_at=self._clock())

        try:
            with session_scope(self._session_factory) as session:
                session.execute(self._upsert(DistanceRecordRow.__table__), [values])
        except SQLAlchemyError as e:
            self._error_count += 1
            logger.error(f'Saving distance record failed: {e}')
            return False

        return True

    @property
    def stats(self) -> dict:
        """Get persistence statistics."""
        return {
            'snapshot_count': self._snapshot_count,
            'error_count': self._error_count,
            'last_snapshot_time': self._last_snapshot_time,
        }
