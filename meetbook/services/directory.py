"""Users and the calendars they own.

The scheduling services only reference ids that must exist here; they never
change identity data themselves.
"""

import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from meetbook.core import config
from meetbook.core.errors import ConflictError, NotFoundError, ValidationError
from meetbook.models.calendar import Calendar
from meetbook.models.user import User

logger = logging.getLogger(__name__)

LIKE_ESCAPE = '\\'


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def require_user(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError(f'User not found: {user_id}')
    return user


def find_missing_user_ids(db: Session, user_ids: list[int]) -> list[int]:
    if not user_ids:
        return []
    found = {row[0] for row in db.query(User.id).filter(User.id.in_(user_ids)).all()}
    return [user_id for user_id in user_ids if user_id not in found]


def _escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )


def search_users(db: Session, query: str) -> list[User]:
    """Case-insensitive substring match on username or email.

    Queries shorter than USER_SEARCH_MIN_QUERY_LENGTH return nothing rather
    than the whole directory.
    """
    normalized = (query or '').strip()
    if len(normalized) < config.USER_SEARCH_MIN_QUERY_LENGTH:
        return []

    pattern = f'%{_escape_like(normalized)}%'
    return db.query(User).filter(
        or_(
            User.username.ilike(pattern, escape=LIKE_ESCAPE),
            User.email.ilike(pattern, escape=LIKE_ESCAPE),
        )
    ).order_by(User.username.asc(), User.id.asc()).limit(config.USER_SEARCH_LIMIT).all()


def create_user(db: Session, username: str, email: str) -> User:
    normalized_username = (username or '').strip()
    normalized_email = normalize_email(email or '')

    if not normalized_username:
        raise ValidationError('Username is required.')
    if '@' not in normalized_email or normalized_email.startswith('@') or normalized_email.endswith('@'):
        raise ValidationError('A valid email address is required.')

    if db.query(User.id).filter(User.email == normalized_email).first():
        raise ConflictError(f'Email already in use: {normalized_email}')
    if db.query(User.id).filter(User.username == normalized_username).first():
        raise ConflictError(f'Username already in use: {normalized_username}')

    user = User(username=normalized_username, email=normalized_email)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError('Username or email already in use.') from exc
    db.refresh(user)

    logger.info('User created: id=%s, username=%s', user.id, user.username)
    return user


def get_calendar(db: Session, calendar_id: int) -> Calendar:
    calendar = db.get(Calendar, calendar_id)
    if calendar is None:
        raise NotFoundError(f'Calendar not found: {calendar_id}')
    return calendar


def get_calendars_by_user(db: Session, user_id: int) -> list[Calendar]:
    return db.query(Calendar).filter(Calendar.user_id == user_id).order_by(Calendar.id.asc()).all()


def create_calendar(db: Session, user_id: int, name: str) -> Calendar:
    normalized_name = (name or '').strip()
    if not normalized_name:
        raise ValidationError('Calendar name is required.')

    if get_user(db, user_id) is None:
        logger.warning('Calendar requested for unknown user: %s', user_id)
        raise NotFoundError(f'User not found: {user_id}')

    calendar = Calendar(user_id=user_id, name=normalized_name)
    db.add(calendar)
    db.commit()
    db.refresh(calendar)

    logger.info("Calendar created: id=%s, name='%s'", calendar.id, calendar.name)
    return calendar
