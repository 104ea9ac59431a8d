"""Booking a FREE slot into a meeting.

schedule_meeting is all-or-nothing: the meeting row, its participants and
the slot's FREE -> BUSY transition commit together or not at all. The
transition itself is the conditional update in slot_store.claim_slot, so
two callers racing for one slot cannot both win.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from meetbook.core.errors import ConflictError, NotFoundError, ValidationError
from meetbook.models.meeting import Meeting, MeetingParticipant
from meetbook.models.time_slot import SlotStatus
from meetbook.services import directory, slot_store

logger = logging.getLogger(__name__)

SLOT_ALREADY_BOOKED = 'Slot already booked.'


def _dedupe(ids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    ordered: list[int] = []
    for value in ids:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def _slot_taken(db: Session, slot_id: int) -> bool:
    # Only a meeting already holding slot_id explains a failed insert as a lost race.
    return db.query(Meeting.id).filter(Meeting.slot_id == slot_id).first() is not None


def schedule_meeting(
    db: Session,
    slot_id: int,
    organizer_id: int,
    title: str,
    description: str | None = None,
    participant_ids: Iterable[int] = (),
) -> Meeting:
    normalized_title = (title or '').strip()
    if not normalized_title:
        raise ValidationError('Meeting title is required.')

    directory.require_user(db, organizer_id)

    participants = _dedupe(participant_ids or ())
    missing = directory.find_missing_user_ids(db, participants)
    if missing:
        raise NotFoundError(f"Participants not found: {', '.join(str(user_id) for user_id in missing)}")

    slot = slot_store.get_slot(db, slot_id)
    if slot.status != SlotStatus.FREE.value:
        raise ConflictError(SLOT_ALREADY_BOOKED)

    meeting = Meeting(
        title=normalized_title,
        description=description,
        organizer_id=organizer_id,
        slot_id=slot.id,
        start_time=slot.start_time,
        end_time=slot.end_time,
        participants=[MeetingParticipant(user_id=user_id) for user_id in participants],
    )

    try:
        db.add(meeting)
        db.flush()
        slot_store.claim_slot(db, slot.id, meeting.id)
        db.commit()
    except ConflictError as exc:
        db.rollback()
        # Losing a booking race is expected under concurrent load.
        logger.info('Booking lost to a concurrent request: slot_id=%s', slot_id)
        raise ConflictError(SLOT_ALREADY_BOOKED) from exc
    except IntegrityError as exc:
        db.rollback()
        if not _slot_taken(db, slot_id):
            raise
        logger.info('Booking lost to a concurrent request: slot_id=%s', slot_id)
        raise ConflictError(SLOT_ALREADY_BOOKED) from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(meeting)
    logger.info(
        'Meeting scheduled: id=%s, slot_id=%s, organizer_id=%s, participants=%s',
        meeting.id,
        meeting.slot_id,
        meeting.organizer_id,
        len(participants),
    )
    return meeting


def get_meeting(db: Session, meeting_id: int) -> Meeting:
    meeting = db.get(Meeting, meeting_id)
    if meeting is None:
        raise NotFoundError(f'Meeting not found: {meeting_id}')
    return meeting


def list_meetings_by_user(db: Session, user_id: int) -> list[Meeting]:
    """Meetings the user organizes or participates in, each listed once."""
    participating = select(MeetingParticipant.meeting_id).where(MeetingParticipant.user_id == user_id)

    return db.query(Meeting).filter(
        or_(
            Meeting.organizer_id == user_id,
            Meeting.id.in_(participating),
        )
    ).order_by(Meeting.start_time.asc(), Meeting.id.asc()).all()
