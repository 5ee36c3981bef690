from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from taskgate.models.tenancy import Company, Department, User
from taskgate.schemas.tenancy import RegisterIn, UserCreate
from taskgate.security.context import Actor
from taskgate.security.errors import ConflictError, ForbiddenError, NotFoundError
from taskgate.security.permissions import Action, ResourceKind, Role
from taskgate.security.scope import apply_boundary, boundary
from taskgate.security.task_gate import Intent, check_resource_access
from taskgate.services import audit

logger = logging.getLogger(__name__)


def _email_taken(db: Session, email: str) -> bool:
    return db.execute(select(User.id).where(User.email == email).limit(1)).first() is not None


def _load_department(db: Session, actor: Actor, department_id: int) -> Department:
    department = db.get(Department, department_id)
    if department is None:
        raise NotFoundError("Department not found")
    if not check_resource_access(actor, department, Intent.ACCESS):
        logger.warning("User %s denied access to department %s", actor.id, department_id)
        raise ForbiddenError("Cannot access users from other departments")
    return department


def get_profile(db: Session, actor: Actor) -> User:
    user = db.execute(
        select(User)
        .where(User.id == actor.id)
        .options(selectinload(User.company), selectinload(User.department))
    ).scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_department_users(db: Session, actor: Actor, department_id: int) -> list[User]:
    """Owners may list any department of their company; admins only their own."""

    department = _load_department(db, actor, department_id)
    users = db.scalars(
        select(User).where(User.department_id == department.id, User.company_id == actor.company_id).order_by(User.id)
    ).all()
    logger.info("Found %d users in department %s for user %s", len(users), department_id, actor.id)
    return list(users)


def create_user(db: Session, actor: Actor, data: UserCreate) -> User:
    department = db.get(Department, data.department_id)
    if department is None:
        raise NotFoundError("Department not found")
    if not check_resource_access(actor, department, Intent.MUTATE):
        raise ForbiddenError("Cannot add users to this department")
    if _email_taken(db, data.email):
        raise ConflictError("User already exists")

    user = User(
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        company_id=department.company_id,
        department_id=department.id,
        role=data.role.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s created in department %s by user %s", user.id, department.id, actor.id)

    audit.record(db, actor, Action.CREATE, ResourceKind.USER, user.id)
    return user


def list_departments(db: Session, actor: Actor) -> list[Department]:
    stmt = apply_boundary(select(Department), Department, boundary(actor, ResourceKind.DEPARTMENT))
    return list(db.scalars(stmt.order_by(Department.id)).all())


def get_company(db: Session, actor: Actor) -> Company:
    company = db.get(Company, actor.company_id)
    if company is None:
        raise NotFoundError("Company not found")
    if not check_resource_access(actor, company, Intent.ACCESS):
        raise ForbiddenError("Access denied")
    return company


def register(db: Session, data: RegisterIn) -> User:
    """
    Create a tenant: company, first department and its owner.

    Credentials are not handled here; the identity provider owns them.
    """

    if _email_taken(db, data.email):
        logger.warning("Registration failed - user already exists: %s", data.email)
        raise ConflictError("User already exists")
    if db.execute(select(Company.id).where(Company.name == data.company_name).limit(1)).first() is not None:
        raise ConflictError("Company already exists")

    company = Company(name=data.company_name)
    db.add(company)
    db.flush()

    department = Department(name=data.department_name, company_id=company.id)
    db.add(department)
    db.flush()

    owner = User(
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        company_id=company.id,
        department_id=department.id,
        role=Role.OWNER.value,
        is_active=True,
    )
    db.add(owner)
    db.commit()
    logger.info("Registered company %s with owner %s", company.id, owner.id)

    actor = Actor(id=owner.id, role=Role.OWNER, company_id=company.id, department_id=department.id, email=owner.email)
    audit.record(db, actor, Action.CREATE, ResourceKind.COMPANY, company.id)
    return get_profile(db, actor)
