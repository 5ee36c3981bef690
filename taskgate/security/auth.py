from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskgate.models.tenancy import User
from taskgate.security.config import SecurityConfig
from taskgate.security.context import Actor
from taskgate.security.errors import ForbiddenError, UnauthenticatedError
from taskgate.security.permissions import parse_role
from taskgate.security.tokens import TokenValidationError, decode_user_id
from taskgate.settings import Settings

logger = logging.getLogger(__name__)


def extract_bearer_token(request: Request, config: SecurityConfig) -> str | None:
    """
    Read `Authorization: Bearer <token>`.

    Returns None when the header is absent; a present but malformed header is unauthenticated (401).
    """

    header_name = config.auth.authorization_header
    bearer_prefix = config.auth.bearer_prefix

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing Authorization header (auth required) path=%s method=%s", request.url.path, request.method)
        return None

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise UnauthenticatedError(f"Invalid {header_name}. Expected '{bearer_prefix} <token>'.")

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise UnauthenticatedError(f"Invalid {header_name}. Missing token after '{bearer_prefix}'.")

    return token


def resolve_user_id(token: str, config: SecurityConfig, settings: Settings) -> int:
    """
    Turn a bearer token into a user id according to the configured provider.

    - `dummy`: the token is the integer user id (local development and tests).
    - `jwt`: the token is a signed JWT whose `sub` is the user id.
    """

    if config.auth.provider == "jwt":
        if not settings.jwt_secret:
            raise RuntimeError("TASKGATE_JWT_SECRET must be set when the jwt auth provider is enabled")
        try:
            return decode_user_id(
                token,
                settings.jwt_secret,
                algorithms=config.auth.jwt_algorithms,
                leeway_seconds=settings.jwt_leeway_seconds,
            )
        except TokenValidationError as exc:
            raise UnauthenticatedError(str(exc)) from exc

    try:
        return int(token)
    except ValueError as exc:
        logger.warning("Bearer token not an int (dummy provider expects user id)")
        raise UnauthenticatedError("Invalid bearer token (expected integer user id).") from exc


def load_user(db: Session, user_id: int) -> User:
    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()

    if user is None or not user.is_active:
        raise UnauthenticatedError("Invalid or inactive user")

    return user


def actor_from_user(user: User) -> Actor:
    role = parse_role(user.role)
    if role is None:
        # Data inconsistency upstream; fail closed.
        raise ForbiddenError("Access denied")

    return Actor(
        id=user.id,
        role=role,
        company_id=user.company_id,
        department_id=user.department_id,
        email=user.email,
    )
