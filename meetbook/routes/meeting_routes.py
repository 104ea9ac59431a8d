from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from meetbook.core.errors import InternalError
from meetbook.routes.deps import DATABASE_UNAVAILABLE, get_db
from meetbook.services import scheduler

router = APIRouter(tags=['meetings'])

MAX_DESCRIPTION_LENGTH = 2000


class CreateMeetingRequest(BaseModel):
    slot_id: int
    organizer_id: int
    title: str
    description: str | None = None
    participant_ids: list[int] = Field(default_factory=list)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer.')

        return normalized


class MeetingResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    organizer_id: int
    slot_id: int
    start_time: datetime
    end_time: datetime
    participant_ids: list[int]
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('/meetings', response_model=MeetingResponse, status_code=status.HTTP_201_CREATED)
def schedule_meeting(data: CreateMeetingRequest, db: Session = Depends(get_db)):
    try:
        return scheduler.schedule_meeting(
            db,
            slot_id=data.slot_id,
            organizer_id=data.organizer_id,
            title=data.title,
            description=data.description,
            participant_ids=data.participant_ids,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.get('/meetings/{meeting_id}', response_model=MeetingResponse)
def get_meeting(meeting_id: int, db: Session = Depends(get_db)):
    try:
        return scheduler.get_meeting(db, meeting_id)
    except SQLAlchemyError as exc:
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.get('/users/{user_id}/meetings', response_model=list[MeetingResponse])
def list_user_meetings(user_id: int, db: Session = Depends(get_db)):
    try:
        return scheduler.list_meetings_by_user(db, user_id)
    except SQLAlchemyError as exc:
        raise InternalError(DATABASE_UNAVAILABLE) from exc
