from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskgate.db.session import get_db
from taskgate.models.tenancy import Company, Department, User
from taskgate.schemas.tenancy import CompanyOut, DepartmentOut, UserCreate, UserOut, UserProfile
from taskgate.security.context import Actor
from taskgate.security.dependencies import get_current_actor
from taskgate.services import users as users_service

router = APIRouter(tags=["users"])


@router.get("/users/me", response_model=UserProfile)
def me(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)) -> User:
    return users_service.get_profile(db, actor)


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> User:
    return users_service.create_user(db, actor, payload)


@router.get("/users/department/{department_id}", response_model=list[UserOut])
def department_users(
    department_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> list[User]:
    return users_service.list_department_users(db, actor, department_id)


@router.get("/departments", response_model=list[DepartmentOut])
def list_departments(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)) -> list[Department]:
    return users_service.list_departments(db, actor)


@router.get("/companies/me", response_model=CompanyOut)
def my_company(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)) -> Company:
    return users_service.get_company(db, actor)
