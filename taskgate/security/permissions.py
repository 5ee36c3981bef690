"""
Authorization vocabulary: roles, actions, resource kinds, scopes and permission requests.

Role is a closed set. Anything that reads a role from storage or a token must go
through `parse_role`, so code past the authentication boundary only ever sees a
valid `Role` member.
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    VIEWER = "viewer"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(str, Enum):
    TASK = "task"
    USER = "user"
    COMPANY = "company"
    DEPARTMENT = "department"
    AUDIT_LOG = "audit_log"


class Scope(str, Enum):
    OWN = "own"
    DEPARTMENT = "department"
    COMPANY = "company"


class PermissionRequest(BaseModel):
    """
    One acceptable permission shape for an endpoint.

    `scope` is a hint declared by the endpoint (the granularity it operates at),
    not something derived from the resource.
    """

    model_config = ConfigDict(frozen=True)

    action: Action
    resource: ResourceKind
    scope: Scope | None = None

    def describe(self) -> str:
        if self.scope is None:
            return f"{self.action.value}:{self.resource.value}"
        return f"{self.action.value}:{self.resource.value}:{self.scope.value}"


def parse_role(raw: object) -> Role | None:
    """Return the `Role` for a stored/claimed value, or None (logged) if it is not one."""

    try:
        return Role(raw)
    except ValueError:
        logger.warning("Unknown role value %r; treating actor as forbidden", raw)
        return None
