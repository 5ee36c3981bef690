from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskgate.db.session import get_db
from taskgate.models.tenancy import User
from taskgate.schemas.tenancy import RegisterIn, UserProfile
from taskgate.services import users as users_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(get_db)) -> User:
    return users_service.register(db, payload)
