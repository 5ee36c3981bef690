"""
Pytest fixtures for the test suite.

Data-layer tests use an in-memory SQLite engine and a session that rolls back
after each test, so tests do not affect each other. API tests get their own
in-memory engine shared across threads (StaticPool) because TestClient runs
sync endpoints in a threadpool.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskgate.models import Company, Department, Task, User
from taskgate.security.context import Actor
from taskgate.security.permissions import Role


TEST_DB_URL = "sqlite:///:memory:"


def make_actor(user: User) -> Actor:
    return Actor(
        id=user.id,
        role=Role(user.role),
        company_id=user.company_id,
        department_id=user.department_id,
        email=user.email,
    )


def seed_tenancy(db: Session) -> SimpleNamespace:
    """
    Two companies.

    c1: d1 (owner, admin, viewer, viewer2), d2 (admin2, viewer_d2)
    c2: d3 (other_owner)
    Tasks: t1 in d1 assigned to viewer by admin, t2 in d1 assigned to viewer2
    by admin, t3 in d2 assigned to viewer_d2 by admin2.
    """

    c1 = Company(name="Company One")
    c2 = Company(name="Company Two")
    db.add_all([c1, c2])
    db.flush()

    d1 = Department(name="Operations", company_id=c1.id)
    d2 = Department(name="Clinic", company_id=c1.id)
    d3 = Department(name="Operations", company_id=c2.id)
    db.add_all([d1, d2, d3])
    db.flush()

    def user(email: str, role: Role, department: Department) -> User:
        return User(
            email=email,
            first_name=email.split("@")[0],
            last_name="Test",
            company_id=department.company_id,
            department_id=department.id,
            role=role.value,
            is_active=True,
        )

    owner = user("owner@c1.test", Role.OWNER, d1)
    admin = user("admin@c1.test", Role.ADMIN, d1)
    viewer = user("viewer@c1.test", Role.VIEWER, d1)
    viewer2 = user("viewer2@c1.test", Role.VIEWER, d1)
    admin2 = user("admin2@c1.test", Role.ADMIN, d2)
    viewer_d2 = user("viewer.d2@c1.test", Role.VIEWER, d2)
    other_owner = user("owner@c2.test", Role.OWNER, d3)
    db.add_all([owner, admin, viewer, viewer2, admin2, viewer_d2, other_owner])
    db.flush()

    def task(title: str, assignee: User, creator: User) -> Task:
        return Task(
            title=title,
            category="general",
            status="todo",
            priority="medium",
            assignee_id=assignee.id,
            created_by_id=creator.id,
            company_id=creator.company_id,
            department_id=assignee.department_id,
        )

    t1 = task("Viewer task", viewer, admin)
    t2 = task("Viewer2 task", viewer2, admin)
    t3 = task("Clinic task", viewer_d2, admin2)
    db.add_all([t1, t2, t3])
    db.commit()

    return SimpleNamespace(
        c1=c1, c2=c2, d1=d1, d2=d2, d3=d3,
        owner=owner, admin=admin, viewer=viewer, viewer2=viewer2,
        admin2=admin2, viewer_d2=viewer_d2, other_owner=other_owner,
        t1=t1, t2=t2, t3=t3,
    )


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from taskgate.db.base import Base
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    Service code calls `commit()`; because the session joins the outer
    transaction, those commits are undone by the final rollback.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def tenancy(db_session) -> SimpleNamespace:
    return seed_tenancy(db_session)


@pytest.fixture
def api_sessionmaker():
    from taskgate.db.base import Base

    api_engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=api_engine)
    yield sessionmaker(bind=api_engine, autocommit=False, autoflush=False, class_=Session)
    api_engine.dispose()


@pytest.fixture
def api_tenancy(api_sessionmaker) -> SimpleNamespace:
    with api_sessionmaker() as db:
        seeded = seed_tenancy(db)
        # Plain ids so tests never touch a detached instance.
        return SimpleNamespace(**{name: obj.id for name, obj in vars(seeded).items()})


@pytest.fixture
def client(api_sessionmaker):
    from taskgate.db.session import attach_authz, get_db
    from taskgate.main import create_app
    from taskgate.security.config import load_security_config
    from taskgate.settings import get_settings

    app = create_app()
    app.state.security_config = load_security_config(get_settings().resolved_security_config_path())

    def override_get_db(request: Request):
        db = attach_authz(api_sessionmaker(), request)
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    # No `with`: the lifespan would create tables in the configured database.
    return TestClient(app)


def bearer(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {user_id}"}


@pytest.fixture
def actor_of():
    return make_actor


@pytest.fixture
def auth_header():
    return bearer
