"""Time slot records per calendar.

A calendar's slots never overlap, whatever their status. Slots start FREE and
only become BUSY through claim_slot, which the meeting scheduler calls while
booking. BUSY slots are frozen: every write to an existing slot is conditional
on it still being FREE, so a booking that lands between a read and the write
wins.
"""

import logging
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from meetbook.core.errors import ConflictError, NotFoundError, OverlapError, ValidationError
from meetbook.core.timeutil import to_canonical
from meetbook.models.calendar import Calendar
from meetbook.models.time_slot import SlotStatus, TimeSlot

logger = logging.getLogger(__name__)

OVERLAP_DETAIL = 'Slot overlaps with an existing slot in this calendar.'


def validate_range(start_time: datetime, end_time: datetime) -> tuple[datetime, datetime]:
    start_time = to_canonical(start_time)
    end_time = to_canonical(end_time)
    if start_time >= end_time:
        raise ValidationError('end_time must be after start_time.')
    return start_time, end_time


def lock_calendar(db: Session, calendar_id: int) -> Calendar:
    """Serialise slot writes on one calendar until the transaction ends.

    Takes a row lock on the calendar; other calendars are unaffected.
    """
    if db.get_bind().dialect.name == 'sqlite':
        # SQLite ignores FOR UPDATE; a write makes the transaction hold the write lock.
        db.execute(
            update(Calendar)
            .where(Calendar.id == calendar_id)
            .values(name=Calendar.name)
            .execution_options(synchronize_session=False)
        )

    calendar = db.query(Calendar).filter(Calendar.id == calendar_id).with_for_update().first()
    if calendar is None:
        db.rollback()
        raise NotFoundError(f'Calendar not found: {calendar_id}')
    return calendar


def find_overlapping_slot(
    db: Session,
    calendar_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_slot_id: int | None = None,
) -> TimeSlot | None:
    query = db.query(TimeSlot).filter(
        TimeSlot.calendar_id == calendar_id,
        TimeSlot.start_time < end_time,
        TimeSlot.end_time > start_time,
    )
    if exclude_slot_id is not None:
        query = query.filter(TimeSlot.id != exclude_slot_id)
    return query.order_by(TimeSlot.start_time.asc(), TimeSlot.id.asc()).first()


def get_slot(db: Session, slot_id: int) -> TimeSlot:
    slot = db.get(TimeSlot, slot_id)
    if slot is None:
        raise NotFoundError(f'Slot not found: {slot_id}')
    return slot


def _slot_exists(db: Session, slot_id: int) -> bool:
    return db.query(TimeSlot.id).filter(TimeSlot.id == slot_id).first() is not None


def create_slot(db: Session, calendar_id: int, start_time: datetime, end_time: datetime) -> TimeSlot:
    start_time, end_time = validate_range(start_time, end_time)
    lock_calendar(db, calendar_id)

    if find_overlapping_slot(db, calendar_id, start_time, end_time):
        db.rollback()
        logger.warning(
            'Slot overlap detected: calendar_id=%s, start=%s, end=%s',
            calendar_id,
            start_time,
            end_time,
        )
        raise OverlapError(OVERLAP_DETAIL)

    slot = TimeSlot(
        calendar_id=calendar_id,
        start_time=start_time,
        end_time=end_time,
        status=SlotStatus.FREE.value,
        meeting_id=None,
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)

    logger.info('Slot created: id=%s, calendar_id=%s', slot.id, slot.calendar_id)
    return slot


def list_slots(
    db: Session,
    calendar_id: int,
    status: SlotStatus | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
) -> list[TimeSlot]:
    """Slots of a calendar intersecting [start_time, end_time).

    Either bound may be omitted. Results are ordered by start time, then id.
    """
    if start_time is not None:
        start_time = to_canonical(start_time)
    if end_time is not None:
        end_time = to_canonical(end_time)
    if start_time is not None and end_time is not None and start_time >= end_time:
        raise ValidationError("'from' must be before 'to'.")

    query = db.query(TimeSlot).filter(TimeSlot.calendar_id == calendar_id)
    if status is not None:
        query = query.filter(TimeSlot.status == SlotStatus(status).value)
    if end_time is not None:
        query = query.filter(TimeSlot.start_time < end_time)
    if start_time is not None:
        query = query.filter(TimeSlot.end_time > start_time)

    return query.order_by(TimeSlot.start_time.asc(), TimeSlot.id.asc()).all()


def list_slots_for_calendars(
    db: Session,
    calendar_ids: list[int],
    start_time: datetime,
    end_time: datetime,
) -> list[TimeSlot]:
    if not calendar_ids:
        return []

    return db.query(TimeSlot).filter(
        TimeSlot.calendar_id.in_(calendar_ids),
        TimeSlot.start_time < end_time,
        TimeSlot.end_time > start_time,
    ).order_by(TimeSlot.start_time.asc(), TimeSlot.id.asc()).all()


def delete_slot(db: Session, slot_id: int) -> None:
    result = db.execute(
        delete(TimeSlot)
        .where(TimeSlot.id == slot_id, TimeSlot.status == SlotStatus.FREE.value)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        db.rollback()
        if not _slot_exists(db, slot_id):
            logger.debug('Slot already absent: id=%s', slot_id)
            return
        logger.warning('Attempt to delete a booked slot: id=%s', slot_id)
        raise ConflictError('Cannot delete a slot linked to a meeting.')

    db.commit()
    logger.info('Slot deleted: id=%s', slot_id)


def update_slot(
    db: Session,
    slot_id: int,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    status: SlotStatus | None = None,
) -> TimeSlot:
    slot = db.query(TimeSlot).filter(TimeSlot.id == slot_id).populate_existing().first()
    if slot is None:
        raise NotFoundError(f'Slot not found: {slot_id}')

    if slot.status != SlotStatus.FREE.value:
        logger.warning('Attempt to edit a booked slot: id=%s, meeting_id=%s', slot_id, slot.meeting_id)
        raise ConflictError('Cannot edit a slot linked to a meeting.')

    if status is not None and SlotStatus(status) != SlotStatus.FREE:
        raise ConflictError('Slots become busy only by scheduling a meeting.')

    new_start, new_end = validate_range(
        start_time if start_time is not None else slot.start_time,
        end_time if end_time is not None else slot.end_time,
    )

    if (new_start, new_end) == (slot.start_time, slot.end_time):
        return slot

    lock_calendar(db, slot.calendar_id)

    if find_overlapping_slot(db, slot.calendar_id, new_start, new_end, exclude_slot_id=slot.id):
        db.rollback()
        logger.warning(
            'Slot overlap detected on update: id=%s, start=%s, end=%s',
            slot_id,
            new_start,
            new_end,
        )
        raise OverlapError(OVERLAP_DETAIL)

    result = db.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot_id, TimeSlot.status == SlotStatus.FREE.value)
        .values(start_time=new_start, end_time=new_end)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        if not _slot_exists(db, slot_id):
            raise NotFoundError(f'Slot not found: {slot_id}')
        logger.warning('Slot booked while being edited: id=%s', slot_id)
        raise ConflictError('Cannot edit a slot linked to a meeting.')

    db.commit()
    db.refresh(slot)
    logger.info('Slot updated: id=%s, start=%s, end=%s', slot.id, slot.start_time, slot.end_time)
    return slot


def claim_slot(db: Session, slot_id: int, meeting_id: int) -> None:
    """Flip a FREE slot to BUSY and link it to meeting_id.

    A single conditional UPDATE; when another booking got there first no row
    matches and ConflictError is raised. The caller owns the transaction.
    """
    result = db.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot_id, TimeSlot.status == SlotStatus.FREE.value)
        .values(status=SlotStatus.BUSY.value, meeting_id=meeting_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError('Slot already booked.')
