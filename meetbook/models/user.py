"""User model definitions."""

from sqlalchemy import Column, Integer, String, DateTime
from meetbook.core.timeutil import utcnow
from meetbook.database import Base


class User(Base):
    """Represents a person who owns calendars and attends meetings."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
