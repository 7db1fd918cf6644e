"""
DistanceRecord table - the single farthest-ever observation.

Always at most one row (id = 1), rewritten whenever the record moves.
"""

from typing import Optional

from sqlalchemy import String, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from proximity_monitor.models.base import Base
from proximity_monitor.tracking.records import DistanceRecord

SINGLETON_ID = 1


class DistanceRecordRow(Base):
    """Persisted distance record plus the time it was last saved."""

    __tablename__ = 'distance_record'

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
        default=SINGLETON_ID,
    )

    hex: Mapped[str] = mapped_column(String(16), nullable=False)
    flight: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    distance_km: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='Distance from observer in km'
    )

    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)
    altitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    timestamp: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='Unix timestamp of the observation'
    )

    gs: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    track: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Extended telemetry
    baro_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    mach: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    tas: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ias: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    nav_altitude_mcp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    nav_qnh: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    nav_heading: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    seen: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rssi: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    messages: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Tracking metadata
    positions_tracked: Mapped[int] = mapped_column(Integer, default=0)
    tracking_duration_seconds: Mapped[float] = mapped_column(Float, default=0.0)
    first_seen: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    set_at: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    saved_at: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment='Unix timestamp of the last write'
    )

    def __repr__(self) -> str:
        return f'<DistanceRecordRow {self.hex} {self.distance_km:.2f}km>'

    @staticmethod
    def values_from(record: DistanceRecord, saved_at: float) -> dict:
        values = record.to_dict()
        values['id'] = SINGLETON_ID
        values['saved_at'] = saved_at
        return values

    def to_record(self) -> DistanceRecord:
        return DistanceRecord(
            hex=self.hex,
            flight=self.flight,
            distance_km=self.distance_km,
            lat=self.lat,
            lon=self.lon,
            altitude=self.altitude,
            timestamp=self.timestamp,
            gs=self.gs,
            track=self.track,
            baro_rate=self.baro_rate,
            mach=self.mach,
            tas=self.tas,
            ias=self.ias,
            nav_altitude_mcp=self.nav_altitude_mcp,
            nav_qnh=self.nav_qnh,
            nav_heading=self.nav_heading,
            seen=self.seen,
            rssi=self.rssi,
            messages=self.messages,
            positions_tracked=self.positions_tracked or 0,
            tracking_duration_seconds=self.tracking_duration_seconds or 0.0,
            first_seen=self.first_seen,
            set_at=self.set_at,
        )
