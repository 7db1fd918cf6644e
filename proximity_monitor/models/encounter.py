"""
Encounter and trackpoint tables.

These hold the periodic snapshot of the in-memory encounter history. The
in-memory store stays authoritative while the process runs; the tables
are only read back on startup.

Design notes:
- Ids come from the in-memory counters, never from the database
- Every snapshot upserts both tables by id
- Nothing is ever deleted (retention is unbounded by policy)
"""

from typing import Optional

from sqlalchemy import String, Float, Integer, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column

from proximity_monitor.models.base import Base
from proximity_monitor.tracking.records import Encounter, Trackpoint


class EncounterRow(Base):
    """Persisted encounter."""

    __tablename__ = 'encounters'

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
        comment='Encounter id assigned by the tracker'
    )

    hex: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        index=True,
        comment='ICAO24 hex address'
    )

    flight: Mapped[Optional[str]] = mapped_column(
        String(16),
        nullable=True,
        comment='Trimmed flight label at encounter start'
    )

    start_ts: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        index=True,
        comment='Unix timestamp the aircraft entered the zone'
    )

    end_ts: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment='Unix timestamp of the last in-zone update'
    )

    min_dist: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='Closest distance to observer in km'
    )

    min_alt: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_alt: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        comment='Encounter still open'
    )

    __table_args__ = (
        Index('ix_encounters_hex_active', 'hex', 'is_active'),
    )

    def __repr__(self) -> str:
        return f'<EncounterRow #{self.id} {self.hex} active={self.is_active}>'

    @staticmethod
    def values_from(encounter: Encounter) -> dict:
        return {
            'id': encounter.id,
            'hex': encounter.hex,
            'flight': encounter.flight,
            'start_ts': encounter.start_ts,
            'end_ts': encounter.end_ts,
            'min_dist': encounter.min_dist,
            'min_alt': encounter.min_alt,
            'max_alt': encounter.max_alt,
            'is_active': encounter.is_active,
        }

    def to_record(self) -> Encounter:
        return Encounter(
            id=self.id,
            hex=self.hex,
            flight=self.flight,
            start_ts=self.start_ts,
            end_ts=self.end_ts,
            min_dist=self.min_dist,
            min_alt=self.min_alt,
            max_alt=self.max_alt,
            is_active=bool(self.is_active),
        )


class TrackpointRow(Base):
    """
    Persisted trackpoint.

    encounter_id is not a foreign key: snapshots write both tables in one
    transaction and never delete, so the constraint would only cost inserts.
    """

    __tablename__ = 'trackpoints'

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
        comment='Trackpoint id assigned by the tracker'
    )

    encounter_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment='Owning encounter'
    )

    ts: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='Unix timestamp of the sample'
    )

    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)
    alt: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gs: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    track: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    __table_args__ = (
        # Trackpoints for one encounter in time order
        Index('ix_trackpoints_encounter_ts', 'encounter_id', 'ts'),
    )

    def __repr__(self) -> str:
        return f'<TrackpointRow #{self.id} enc={self.encounter_id} @ {self.ts}>'

    @staticmethod
    def values_from(point: Trackpoint) -> dict:
        return point.to_dict()

    def to_record(self) -> Trackpoint:
        return Trackpoint(
            id=self.id,
            encounter_id=self.encounter_id,
            ts=self.ts,
            lat=self.lat,
            lon=self.lon,
            alt=self.alt,
            gs=self.gs,
            track=self.track,
        )
