"""
Permission policy: decides whether an actor may perform an action on a kind of resource.

Pure functions, no I/O. The decision table per role:

    owner   task: all             user: all but delete   audit_log/department/company: read
    admin   task: all             user: read, update     audit_log/department/company: read
    viewer  task: read, create,   user: read (own only)  everything else: denied
                  update (own only)

Breadth (company vs department) is not decided here; the scope resolver and the
task gate narrow what an allowed action can reach.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from taskgate.security.context import Actor
from taskgate.security.permissions import Action, PermissionRequest, ResourceKind, Role, Scope

logger = logging.getLogger(__name__)

_READ_ONLY_KINDS = frozenset({ResourceKind.AUDIT_LOG, ResourceKind.DEPARTMENT, ResourceKind.COMPANY})


def _owner_allows(request: PermissionRequest) -> bool:
    # Owners cannot delete users.
    if request.resource is ResourceKind.USER and request.action is Action.DELETE:
        return False
    if request.resource in _READ_ONLY_KINDS:
        return request.action is Action.READ
    return True


def _admin_allows(request: PermissionRequest) -> bool:
    if request.resource is ResourceKind.TASK:
        return True
    if request.resource is ResourceKind.USER:
        return request.action in (Action.READ, Action.UPDATE)
    return request.action is Action.READ


def _viewer_allows(request: PermissionRequest) -> bool:
    if request.resource is ResourceKind.TASK:
        if request.action in (Action.READ, Action.CREATE):
            return True
        if request.action is Action.UPDATE:
            return request.scope is Scope.OWN
        return False
    if request.resource is ResourceKind.USER:
        return request.action is Action.READ and request.scope is Scope.OWN
    return False


_ROLE_POLICIES: dict[Role, Callable[[PermissionRequest], bool]] = {
    Role.OWNER: _owner_allows,
    Role.ADMIN: _admin_allows,
    Role.VIEWER: _viewer_allows,
}

_missing = set(Role) - set(_ROLE_POLICIES)
if _missing:
    raise RuntimeError(f"Roles without a permission policy: {sorted(r.value for r in _missing)}")


def is_allowed(actor: Actor, request: PermissionRequest) -> bool:
    """Evaluate a single permission request for a fully populated actor."""

    allowed = _ROLE_POLICIES[actor.role](request)
    logger.debug(
        "Policy decision actor=%s role=%s request=%s allowed=%s",
        actor.id,
        actor.role.value,
        request.describe(),
        allowed,
    )
    return allowed


def evaluate(actor: Actor | None, required: Iterable[PermissionRequest] | None) -> bool:
    """
    Return True if any of `required` is satisfied by `actor`.

    - No declared requirement -> allowed (public endpoint).
    - No actor, or an actor missing id/company/department -> denied.
    """

    required = tuple(required or ())
    if not required:
        return True

    if actor is None:
        logger.info("Permission check without actor required=%s", [r.describe() for r in required])
        return False

    if not actor.is_complete:
        logger.warning("Permission check with incomplete actor id=%s; denying", actor.id)
        return False

    if any(is_allowed(actor, r) for r in required):
        return True

    logger.warning(
        "Permission denied actor=%s role=%s required one of %s",
        actor.id,
        actor.role.value,
        [r.describe() for r in required],
    )
    return False


def check_permission(actor: Actor | None, one_of: Iterable[PermissionRequest] | None) -> bool:
    """Entry point for endpoint layers; see `evaluate`."""
    return evaluate(actor, one_of)
