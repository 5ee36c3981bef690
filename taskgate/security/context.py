from __future__ import annotations

from dataclasses import dataclass

from taskgate.security.permissions import Role


@dataclass(frozen=True)
class Actor:
    """
    The resolved identity making a request.

    Built once per request by the authentication collaborator and never persisted.
    """

    id: int | None
    role: Role
    company_id: int | None
    department_id: int | None
    email: str | None = None

    @property
    def is_complete(self) -> bool:
        """An actor missing any tenancy attribute is invalid input and is denied everywhere."""
        return self.id is not None and self.company_id is not None and self.department_id is not None


@dataclass(frozen=True)
class AuthzContext:
    """
    Per-request authorization context.

    Attached to:
    - request.state (FastAPI request lifetime)
    - Session.info (SQLAlchemy session lifetime)

    `scope_boundary` is set for listing routes; it tells the session filter to
    narrow task and audit log selects to the actor's boundary.
    """

    actor: Actor
    scope_boundary: bool = False
