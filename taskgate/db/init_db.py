from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskgate.db.base import Base
from taskgate.db.session import SessionLocal, engine
from taskgate.models.tasks import Task, TaskPriority, TaskStatus
from taskgate.models.tenancy import Company, Department, User
from taskgate.security.permissions import Role


def init_db() -> None:
    """
    Create tables + seed demo data.

    Small and deterministic so the authorization behavior can be tried right
    away with the dummy auth provider (`Authorization: Bearer <user id>`).
    """

    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        _seed(db)


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Company.id).limit(1)).first() is not None


def _seed(db: Session) -> None:
    acme = Company(name="Acme Veterinary")
    db.add(acme)
    db.flush()

    ops = Department(name="Operations", company_id=acme.id)
    clinic = Department(name="Clinic", company_id=acme.id)
    db.add_all([ops, clinic])
    db.flush()

    olive = User(email="olive.owner@example.com", first_name="Olive", last_name="Owner",
                 company_id=acme.id, department_id=ops.id, role=Role.OWNER.value)
    adam = User(email="adam.admin@example.com", first_name="Adam", last_name="Admin",
                company_id=acme.id, department_id=ops.id, role=Role.ADMIN.value)
    vera = User(email="vera.viewer@example.com", first_name="Vera", last_name="Viewer",
                company_id=acme.id, department_id=ops.id, role=Role.VIEWER.value)
    carl = User(email="carl.clinic@example.com", first_name="Carl", last_name="Clinic",
                company_id=acme.id, department_id=clinic.id, role=Role.ADMIN.value)
    db.add_all([olive, adam, vera, carl])
    db.flush()

    db.add_all(
        [
            Task(title="Order supplies", category="logistics", status=TaskStatus.TODO.value,
                 priority=TaskPriority.HIGH.value, assignee_id=vera.id, created_by_id=adam.id,
                 company_id=acme.id, department_id=ops.id),
            Task(title="Review rota", category="planning", status=TaskStatus.IN_PROGRESS.value,
                 priority=TaskPriority.MEDIUM.value, assignee_id=adam.id, created_by_id=olive.id,
                 company_id=acme.id, department_id=ops.id),
            Task(title="Restock exam room", category="clinic", status=TaskStatus.DONE.value,
                 priority=TaskPriority.LOW.value, assignee_id=carl.id, created_by_id=olive.id,
                 company_id=acme.id, department_id=clinic.id),
        ]
    )

    db.commit()
