from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session, with_loader_criteria

from taskgate.security.permissions import ResourceKind
from taskgate.security.scope import boundary, boundary_column


@event.listens_for(Session, "do_orm_execute")
def _apply_scope_boundary(execute_state) -> None:
    """
    Transparent listing scope.

    On routes marked `scope_boundary`, every ORM select that loads tasks or
    audit log entries is narrowed to the actor's company (owner) or department
    (admin, viewer), including rows reached through relationships.
    """

    if not execute_state.is_select:
        return

    authz = execute_state.session.info.get("authz")
    if authz is None or not authz.scope_boundary:
        return

    # Local import to avoid cycles.
    from taskgate.models.tasks import AuditLog, Task

    options = []
    for model, kind in ((Task, ResourceKind.TASK), (AuditLog, ResourceKind.AUDIT_LOG)):
        bound = boundary(authz.actor, kind)
        options.append(
            with_loader_criteria(model, boundary_column(model, bound) == bound.value, include_aliases=True)
        )

    execute_state.statement = execute_state.statement.options(*options)
