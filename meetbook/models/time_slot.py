"""Time slot model definitions."""

import enum

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Index, String
from meetbook.core.timeutil import utcnow
from meetbook.database import Base


class SlotStatus(str, enum.Enum):
    FREE = "FREE"
    BUSY = "BUSY"


class TimeSlot(Base):
    """A half-open [start_time, end_time) interval on a calendar.

    meeting_id is set exactly when the slot is BUSY.
    """
    __tablename__ = "time_slots"
    __table_args__ = (
        Index("idx_time_slots_calendar_start", "calendar_id", "start_time"),
        Index("idx_time_slots_status_start", "status", "start_time"),
    )

    id = Column(Integer, primary_key=True)
    calendar_id = Column(Integer, ForeignKey("calendars.id"), index=True, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=SlotStatus.FREE.value)
    meeting_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow)
