import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from meetbook.database import Base  # noqa: E402
from meetbook.models.calendar import Calendar  # noqa: E402
from meetbook.models.meeting import Meeting, MeetingParticipant  # noqa: F401,E402
from meetbook.models.time_slot import TimeSlot  # noqa: F401,E402
from meetbook.models.user import User  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(username: str, email: str | None = None) -> User:
        user = User(username=username, email=email or f'{username}@example.com')
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_calendar(db):
    def _make_calendar(owner: User, name: str = 'Work') -> Calendar:
        calendar = Calendar(user_id=owner.id, name=name)
        db.add(calendar)
        db.commit()
        db.refresh(calendar)
        return calendar

    return _make_calendar


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over a file database, for tests that need several connections."""
    from meetbook.database import build_engine

    engine = build_engine(f"sqlite:///{tmp_path / 'meetbook.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()
