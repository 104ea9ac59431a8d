"""Meeting model definitions."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship
from meetbook.core.timeutil import utcnow
from meetbook.database import Base


class Meeting(Base):
    """A booking that consumed exactly one slot.

    start_time and end_time are copied from the slot when it is booked.
    """
    __tablename__ = "meetings"
    __table_args__ = (Index("idx_meetings_organizer_start", "organizer_id", "start_time"),)

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    slot_id = Column(Integer, unique=True, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    participants = relationship(
        "MeetingParticipant",
        order_by="MeetingParticipant.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def participant_ids(self) -> list[int]:
        return [participant.user_id for participant in self.participants]


class MeetingParticipant(Base):
    """A user invited to a meeting, tracked separately from the organizer."""
    __tablename__ = "meeting_participants"
    __table_args__ = (UniqueConstraint("meeting_id", "user_id", name="uq_meeting_participant"),)

    id = Column(Integer, primary_key=True)
    meeting_id = Column(Integer, ForeignKey("meetings.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
