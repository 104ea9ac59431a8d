from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from meetbook.core.errors import InternalError
from meetbook.core.timeutil import to_canonical
from meetbook.models.time_slot import SlotStatus
from meetbook.routes.deps import DATABASE_UNAVAILABLE, get_db
from meetbook.services import availability, slot_store

router = APIRouter(tags=['slots'])


class CreateSlotRequest(BaseModel):
    start_time: datetime
    end_time: datetime

    @field_validator('start_time', 'end_time')
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return to_canonical(value)


class UpdateSlotRequest(BaseModel):
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: SlotStatus | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return to_canonical(value)


class TimeSlotResponse(BaseModel):
    id: int
    calendar_id: int
    start_time: datetime
    end_time: datetime
    status: SlotStatus
    meeting_id: int | None = None

    class Config:
        from_attributes = True


class AvailabilityItemResponse(BaseModel):
    slot_id: int
    start_time: datetime
    end_time: datetime
    status: SlotStatus

    class Config:
        from_attributes = True


@router.post(
    '/calendars/{calendar_id}/slots',
    response_model=TimeSlotResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_slot(calendar_id: int, data: CreateSlotRequest, db: Session = Depends(get_db)):
    try:
        return slot_store.create_slot(db, calendar_id, data.start_time, data.end_time)
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.get('/calendars/{calendar_id}/slots', response_model=list[TimeSlotResponse])
def list_slots(
    calendar_id: int,
    slot_status: SlotStatus | None = Query(default=None, alias='status'),
    start_time: datetime | None = Query(default=None, alias='from'),
    end_time: datetime | None = Query(default=None, alias='to'),
    db: Session = Depends(get_db),
):
    try:
        return slot_store.list_slots(db, calendar_id, slot_status, start_time, end_time)
    except SQLAlchemyError as exc:
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.put('/slots/{slot_id}', response_model=TimeSlotResponse)
def update_slot(slot_id: int, data: UpdateSlotRequest, db: Session = Depends(get_db)):
    try:
        return slot_store.update_slot(
            db,
            slot_id,
            start_time=data.start_time,
            end_time=data.end_time,
            status=data.status,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.delete('/slots/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(slot_id: int, db: Session = Depends(get_db)):
    try:
        slot_store.delete_slot(db, slot_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.get('/users/{user_id}/availability', response_model=list[AvailabilityItemResponse])
def get_availability(
    user_id: int,
    start_time: datetime = Query(alias='from'),
    end_time: datetime = Query(alias='to'),
    db: Session = Depends(get_db),
):
    try:
        return availability.get_availability(db, user_id, start_time, end_time)
    except SQLAlchemyError as exc:
        raise InternalError(DATABASE_UNAVAILABLE) from exc
