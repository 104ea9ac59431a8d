"""Calendar model definitions."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from meetbook.core.timeutil import utcnow
from meetbook.database import Base


class Calendar(Base):
    """A named set of time slots owned by one user."""
    __tablename__ = "calendars"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
