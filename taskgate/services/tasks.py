"""
Task operations.

Every operation follows the same order: load the resource, evaluate the gate,
mutate and commit, then append the audit entry. Missing tasks are reported as
not found before any access decision, so existence is reported consistently.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from taskgate.models.tasks import Task, TaskStatus
from taskgate.models.tenancy import User
from taskgate.schemas.tasks import TaskCreate, TaskQuery, TaskUpdate
from taskgate.security.context import Actor
from taskgate.security.errors import ForbiddenError, InvalidAssignmentError, NotFoundError
from taskgate.security.permissions import Action, ResourceKind, Role
from taskgate.security.scope import apply_boundary, boundary
from taskgate.security.task_gate import AssignmentDecision, can_access, can_delete, can_mutate, check_assignment
from taskgate.services import audit

logger = logging.getLogger(__name__)

# Columns that cannot be cleared by an update.
_REQUIRED_FIELDS = frozenset({"title", "status", "priority", "category"})


def _load_task(db: Session, task_id: int) -> Task:
    task = db.get(Task, task_id)
    if task is None:
        logger.warning("Task %s not found", task_id)
        raise NotFoundError("Task not found")
    return task


def _resolve_assignee(db: Session, actor: Actor, assignee_id: int) -> User:
    assignee = db.get(User, assignee_id)
    decision = check_assignment(actor, assignee)
    if decision is not AssignmentDecision.ALLOWED:
        raise InvalidAssignmentError(decision)
    return assignee


def list_tasks(db: Session, actor: Actor, query: TaskQuery) -> tuple[list[Task], int]:
    logger.info("Finding tasks for user %s with query %s", actor.id, query.model_dump(exclude_none=True))

    stmt = apply_boundary(select(Task), Task, boundary(actor, ResourceKind.TASK))
    if query.status is not None:
        stmt = stmt.where(Task.status == query.status.value)
    if query.priority is not None:
        stmt = stmt.where(Task.priority == query.priority.value)
    if query.assignee is not None:
        stmt = stmt.where(Task.assignee_id == query.assignee)
    if query.category is not None:
        stmt = stmt.where(Task.category == query.category)

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    tasks = list(
        db.scalars(
            stmt.order_by(Task.created_at.desc(), Task.id.desc())
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        ).all()
    )
    logger.info("Found %d tasks out of %d for user %s", len(tasks), total, actor.id)

    audit.record(db, actor, Action.READ, ResourceKind.TASK, "multiple")
    return tasks, total


def get_task(db: Session, actor: Actor, task_id: int) -> Task:
    task = _load_task(db, task_id)
    if not can_access(actor, task):
        logger.warning("User %s denied access to task %s", actor.id, task_id)
        raise ForbiddenError("Access denied")

    audit.record(db, actor, Action.READ, ResourceKind.TASK, task.id)
    return task


def create_task(db: Session, actor: Actor, data: TaskCreate) -> Task:
    assignee = _resolve_assignee(db, actor, data.assignee_id)

    task = Task(
        title=data.title,
        description=data.description,
        status=data.status.value,
        priority=data.priority.value,
        category=data.category,
        assignee_id=assignee.id,
        created_by_id=actor.id,
        company_id=actor.company_id,
        department_id=assignee.department_id,
        due_date=data.due_date,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Task %s created by user %s", task.id, actor.id)

    audit.record(db, actor, Action.CREATE, ResourceKind.TASK, task.id)
    return task


def update_task(db: Session, actor: Actor, task_id: int, data: TaskUpdate) -> Task:
    task = _load_task(db, task_id)
    if not can_mutate(actor, task):
        logger.warning("User %s cannot update task %s", actor.id, task_id)
        raise ForbiddenError("Cannot update this task")

    changes = data.model_dump(exclude_unset=True)

    assignee_id = changes.pop("assignee_id", None)
    if assignee_id is not None and assignee_id != task.assignee_id:
        assignee = _resolve_assignee(db, actor, assignee_id)
        task.assignee_id = assignee.id
        # The assignee's department is the task's department.
        task.department_id = assignee.department_id

    for field, value in changes.items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(task, field, getattr(value, "value", value))

    db.commit()
    db.refresh(task)

    audit.record(db, actor, Action.UPDATE, ResourceKind.TASK, task.id)
    return task


def update_status(db: Session, actor: Actor, task_id: int, status: TaskStatus) -> Task:
    # Any status may follow any other; there is no workflow ordering.
    return update_task(db, actor, task_id, TaskUpdate(status=status))


def delete_task(db: Session, actor: Actor, task_id: int) -> None:
    task = _load_task(db, task_id)
    if not can_delete(actor, task):
        logger.warning("User %s (%s) cannot delete task %s", actor.id, actor.role.value, task_id)
        if actor.role is Role.VIEWER:
            raise ForbiddenError("Viewers cannot delete tasks")
        raise ForbiddenError("Cannot delete this task")

    db.delete(task)
    db.commit()
    logger.info("Task %s deleted by user %s", task_id, actor.id)

    audit.record(db, actor, Action.DELETE, ResourceKind.TASK, task_id)
