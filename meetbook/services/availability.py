"""A user's free/busy view across every calendar they own."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from meetbook.core.errors import ValidationError
from meetbook.core.timeutil import to_canonical
from meetbook.models.time_slot import SlotStatus
from meetbook.services import directory, slot_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityItem:
    slot_id: int
    start_time: datetime
    end_time: datetime
    status: SlotStatus


def get_availability(db: Session, user_id: int, start_time: datetime, end_time: datetime) -> list[AvailabilityItem]:
    """One item per underlying slot intersecting [start_time, end_time).

    Adjacent free slots are not merged. A user without calendars gets an
    empty list.
    """
    start_time = to_canonical(start_time)
    end_time = to_canonical(end_time)
    if start_time >= end_time:
        raise ValidationError("'from' must be before 'to'.")

    calendar_ids = [calendar.id for calendar in directory.get_calendars_by_user(db, user_id)]
    logger.debug(
        'Getting availability: user_id=%s, calendars=%s, from=%s, to=%s',
        user_id,
        calendar_ids,
        start_time,
        end_time,
    )

    return [
        AvailabilityItem(
            slot_id=slot.id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            status=SlotStatus(slot.status),
        )
        for slot in slot_store.list_slots_for_calendars(db, calendar_ids, start_time, end_time)
    ]
