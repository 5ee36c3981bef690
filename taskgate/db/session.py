from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from taskgate.settings import get_settings


def _build_engine(url: str):
    # SQLite connections are used from FastAPI's threadpool.
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = _build_engine(get_settings().resolved_db_url())

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def attach_authz(db: Session, request: Request) -> Session:
    """
    Copy the request's `AuthzContext` into `Session.info["authz"]`.

    The `do_orm_execute` listener in `taskgate.db.filters` reads it from there.
    Requests on public routes carry no context and leave the session untouched.
    """

    authz = getattr(request.state, "authz", None)
    if authz is not None:
        db.info["authz"] = authz
    return db


def get_db(request: Request) -> Generator[Session, None, None]:
    """Per-request session carrying the caller's authorization context."""

    db = attach_authz(SessionLocal(), request)
    try:
        yield db
    finally:
        db.close()
