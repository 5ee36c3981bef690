from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from taskgate.db.session import get_db
from taskgate.security.auth import actor_from_user, extract_bearer_token, load_user, resolve_user_id
from taskgate.security.config import SecurityConfig
from taskgate.security.context import Actor, AuthzContext
from taskgate.security.errors import ForbiddenError, UnauthenticatedError
from taskgate.security.policy import check_permission
from taskgate.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def get_authz(request: Request) -> AuthzContext:
    authz = getattr(request.state, "authz", None)
    if authz is None:
        raise UnauthenticatedError()
    return authz


def get_current_actor(authz: AuthzContext = Depends(get_authz)) -> Actor:
    return authz.actor


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db, use_cache=False),
) -> None:
    """
    Global security dependency.

    Order matters: the actor is resolved before the policy runs, so a request
    without credentials is always 401, never 403.
    """

    rule = config.match(request.url.path, request.method)
    if not rule.auth_required:
        return

    token = extract_bearer_token(request, config)
    if token is None:
        raise UnauthenticatedError()

    user = load_user(db, resolve_user_id(token, config, settings))
    actor = actor_from_user(user)

    if not check_permission(actor, rule.permissions):
        raise ForbiddenError(
            f"Insufficient permissions. Required one of: {[p.describe() for p in rule.permissions]}"
        )

    request.state.authz = AuthzContext(actor=actor, scope_boundary=rule.scope_boundary)
