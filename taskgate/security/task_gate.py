"""
Row-level gates evaluated against a loaded resource.

These run after the permission policy has allowed the action and after the
resource has been loaded. They return decisions; translating a denial into an
HTTP error is the caller's job.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol

from taskgate.security.context import Actor
from taskgate.security.permissions import ResourceKind, Role

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    ACCESS = "access"
    MUTATE = "mutate"


class AssignmentDecision(str, Enum):
    ALLOWED = "allowed"
    ASSIGNEE_NOT_FOUND = "assignee_not_found"
    OUTSIDE_COMPANY = "outside_company"
    OUTSIDE_DEPARTMENT = "outside_department"
    NOT_SELF = "not_self"


class TaskLike(Protocol):
    company_id: int
    department_id: int
    assignee_id: int
    created_by_id: int


class AssigneeLike(Protocol):
    id: int
    company_id: int
    department_id: int


def _usable(actor: Actor | None) -> bool:
    return actor is not None and actor.is_complete


def can_access(actor: Actor | None, task: TaskLike) -> bool:
    """Single-task read: owner within the company, admin or viewer within the department."""

    if not _usable(actor):
        return False
    if actor.role is Role.OWNER:
        return actor.company_id == task.company_id
    # Admins and viewers read the whole department, not just their own tasks.
    return actor.company_id == task.company_id and actor.department_id == task.department_id


def can_mutate(actor: Actor | None, task: TaskLike) -> bool:
    """Task update: owner within the company, admin within the department, viewer on own tasks."""

    if not _usable(actor):
        return False
    if actor.role is Role.OWNER:
        return actor.company_id == task.company_id
    if actor.role is Role.ADMIN:
        return actor.company_id == task.company_id and actor.department_id == task.department_id
    return actor.company_id == task.company_id and actor.id in (task.assignee_id, task.created_by_id)


def can_delete(actor: Actor | None, task: TaskLike) -> bool:
    """Task delete: like `can_mutate`, but viewers never delete, even their own tasks."""

    if not _usable(actor) or actor.role is Role.VIEWER:
        return False
    return can_mutate(actor, task)


def check_assignment(actor: Actor, assignee: AssigneeLike | None) -> AssignmentDecision:
    """
    Validate the assignee of a task being created or reassigned.

    The assignee must exist in the actor's company. Non-owners cannot assign
    across departments, and viewers can only assign tasks to themselves.
    """

    if assignee is None:
        decision = AssignmentDecision.ASSIGNEE_NOT_FOUND
    elif assignee.company_id != actor.company_id:
        decision = AssignmentDecision.OUTSIDE_COMPANY
    elif actor.role is not Role.OWNER and assignee.department_id != actor.department_id:
        decision = AssignmentDecision.OUTSIDE_DEPARTMENT
    elif actor.role is Role.VIEWER and assignee.id != actor.id:
        decision = AssignmentDecision.NOT_SELF
    else:
        decision = AssignmentDecision.ALLOWED

    if decision is not AssignmentDecision.ALLOWED:
        logger.warning("Invalid assignment actor=%s role=%s reason=%s", actor.id, actor.role.value, decision.value)
    return decision


def _department_of(resource: Any, kind: ResourceKind) -> int | None:
    if kind is ResourceKind.DEPARTMENT:
        return resource.id
    return getattr(resource, "department_id", None)


def _company_of(resource: Any, kind: ResourceKind) -> int | None:
    if kind is ResourceKind.COMPANY:
        return resource.id
    return getattr(resource, "company_id", None)


def check_resource_access(
    actor: Actor | None,
    resource: Any,
    intent: Intent,
    kind: ResourceKind | None = None,
) -> bool:
    """
    Gate a loaded resource of any kind.

    The kind is read from the resource's `__resource_kind__` unless given; an
    unknown kind is denied.
    """

    kind = kind or getattr(resource, "__resource_kind__", None)
    if kind is None:
        logger.warning("Cannot determine resource kind of %s; denying", type(resource).__name__)
        return False
    if not _usable(actor):
        return False

    if kind is ResourceKind.TASK:
        return can_access(actor, resource) if intent is Intent.ACCESS else can_mutate(actor, resource)

    company_id = _company_of(resource, kind)
    if company_id != actor.company_id:
        return False

    if kind is ResourceKind.COMPANY:
        return intent is Intent.ACCESS or actor.role is Role.OWNER

    if actor.role is Role.OWNER:
        # Audit entries are append-only.
        return intent is Intent.ACCESS or kind is not ResourceKind.AUDIT_LOG

    department_id = _department_of(resource, kind)
    if actor.role is Role.ADMIN:
        if kind is ResourceKind.AUDIT_LOG and intent is Intent.MUTATE:
            return False
        return department_id == actor.department_id

    if kind is ResourceKind.USER:
        return resource.id == actor.id
    if kind is ResourceKind.DEPARTMENT:
        return intent is Intent.ACCESS and department_id == actor.department_id
    return False
