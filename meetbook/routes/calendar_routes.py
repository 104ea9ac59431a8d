from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from meetbook.core.errors import InternalError
from meetbook.routes.deps import DATABASE_UNAVAILABLE, get_db
from meetbook.services import directory

router = APIRouter(tags=['calendars'])


class CreateCalendarRequest(BaseModel):
    user_id: int
    name: str


class CalendarResponse(BaseModel):
    id: int
    user_id: int
    name: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('/calendars', response_model=CalendarResponse, status_code=status.HTTP_201_CREATED)
def create_calendar(data: CreateCalendarRequest, db: Session = Depends(get_db)):
    try:
        return directory.create_calendar(db, data.user_id, data.name)
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.get('/calendars/{calendar_id}', response_model=CalendarResponse)
def get_calendar(calendar_id: int, db: Session = Depends(get_db)):
    try:
        return directory.get_calendar(db, calendar_id)
    except SQLAlchemyError as exc:
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.get('/users/{user_id}/calendars', response_model=list[CalendarResponse])
def list_user_calendars(user_id: int, db: Session = Depends(get_db)):
    try:
        return directory.get_calendars_by_user(db, user_id)
    except SQLAlchemyError as exc:
        raise InternalError(DATABASE_UNAVAILABLE) from exc
