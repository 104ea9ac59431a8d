from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from meetbook.core.errors import InternalError
from meetbook.routes.deps import DATABASE_UNAVAILABLE, get_db
from meetbook.services import directory

router = APIRouter(tags=['users'])


class CreateUserRequest(BaseModel):
    username: str
    email: str

    @field_validator('username')
    @classmethod
    def normalize_username(cls, value: str) -> str:
        return value.strip()

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return directory.normalize_email(value)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(data: CreateUserRequest, db: Session = Depends(get_db)):
    try:
        return directory.create_user(db, data.username, data.email)
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.get('/search', response_model=list[UserResponse])
def search_users(q: str = Query(default=''), db: Session = Depends(get_db)):
    try:
        return directory.search_users(db, q)
    except SQLAlchemyError as exc:
        raise InternalError(DATABASE_UNAVAILABLE) from exc


@router.get('/{user_id}', response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    try:
        return directory.require_user(db, user_id)
    except SQLAlchemyError as exc:
        raise InternalError(DATABASE_UNAVAILABLE) from exc
