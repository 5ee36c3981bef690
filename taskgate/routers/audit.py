from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taskgate.db.session import get_db
from taskgate.schemas.tasks import AuditLogListOut, AuditLogOut
from taskgate.security.context import Actor
from taskgate.security.dependencies import get_current_actor
from taskgate.services import audit as audit_service

router = APIRouter(tags=["audit"])


@router.get("/audit-logs", response_model=AuditLogListOut)
def list_audit_logs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> AuditLogListOut:
    logs, total = audit_service.list_audit_logs(db, actor, page=page, limit=limit)
    return AuditLogListOut(logs=[AuditLogOut.model_validate(e) for e in logs], total=total, page=page, limit=limit)
