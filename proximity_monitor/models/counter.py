"""
Id counters for the persisted collections.

One row per collection ('encounters', 'trackpoints') holding the next id
to assign, so ids are never reused across restarts.
"""

from typing import Optional

from sqlalchemy import String, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from proximity_monitor.models.base import Base

ENCOUNTERS = 'encounters'
TRACKPOINTS = 'trackpoints'


class TrackingCounter(Base):
    __tablename__ = 'tracking_counters'

    name: Mapped[str] = mapped_column(String(32), primary_key=True)

    next_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment='Next id to assign in this collection'
    )

    saved_at: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment='Unix timestamp of the last snapshot'
    )

    def __repr__(self) -> str:
        return f'<TrackingCounter {self.name}={self.next_id}>'
