"""
Audit recorder.

Entries are appended only after the audited operation has been committed, and
are read back through the same boundary as tasks. A failure to write an entry
propagates to the caller; it is never swallowed or retried here.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from taskgate.models.tasks import AuditLog
from taskgate.security.context import Actor
from taskgate.security.permissions import Action, ResourceKind
from taskgate.security.scope import apply_boundary, boundary

logger = logging.getLogger(__name__)


def record(
    db: Session,
    actor: Actor,
    action: Action,
    resource_kind: ResourceKind,
    resource_id: int | str,
) -> AuditLog:
    entry = AuditLog(
        user_id=actor.id,
        action=action.value,
        resource=resource_kind.value,
        resource_id=str(resource_id),
        company_id=actor.company_id,
        department_id=actor.department_id,
    )
    db.add(entry)
    db.commit()
    logger.debug("Audit %s %s:%s by user %s", action.value, resource_kind.value, resource_id, actor.id)
    return entry


def list_audit_logs(db: Session, actor: Actor, page: int = 1, limit: int = 50) -> tuple[list[AuditLog], int]:
    """Newest first, narrowed to the actor's company (owner) or department."""

    stmt = apply_boundary(select(AuditLog), AuditLog, boundary(actor, ResourceKind.AUDIT_LOG))

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    logs = db.scalars(
        stmt.options(selectinload(AuditLog.user))
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    logger.info("Found %d audit logs out of %d for user %s", len(logs), total, actor.id)
    return list(logs), total
