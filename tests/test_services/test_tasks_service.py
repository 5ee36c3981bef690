"""
Tests for task operations: gates, assignment rule and audit ordering.
"""
from __future__ import annotations

import pytest
from sqlalchemy import select

from taskgate.models import AuditLog, Task, TaskPriority, TaskStatus
from taskgate.schemas.tasks import TaskCreate, TaskQuery, TaskUpdate
from taskgate.security.errors import ForbiddenError, InvalidAssignmentError, NotFoundError
from taskgate.security.task_gate import AssignmentDecision
from taskgate.services import tasks as tasks_service


def _audit_entries(db_session) -> list[tuple[int, str, str, str]]:
    rows = db_session.scalars(select(AuditLog).order_by(AuditLog.id)).all()
    return [(r.user_id, r.action, r.resource, r.resource_id) for r in rows]


def _payload(assignee_id: int, **overrides) -> TaskCreate:
    fields = {"title": "Check inventory", "category": "ops", "assignee_id": assignee_id}
    fields.update(overrides)
    return TaskCreate(**fields)


# --- create -----------------------------------------------------------------------


def test_admin_creates_task_for_same_department(tenancy, db_session, actor_of):
    admin = actor_of(tenancy.admin)
    task = tasks_service.create_task(db_session, admin, _payload(tenancy.viewer.id))

    assert task.department_id == tenancy.d1.id
    assert task.company_id == tenancy.c1.id
    assert task.created_by_id == admin.id
    assert task.status == TaskStatus.TODO.value
    assert _audit_entries(db_session) == [(admin.id, "create", "task", str(task.id))]


def test_admin_cross_department_assignment_is_invalid_not_forbidden(tenancy, db_session, actor_of):
    with pytest.raises(InvalidAssignmentError) as exc_info:
        tasks_service.create_task(db_session, actor_of(tenancy.admin), _payload(tenancy.viewer_d2.id))

    assert not isinstance(exc_info.value, ForbiddenError)
    assert exc_info.value.status_code == 422
    assert exc_info.value.decision is AssignmentDecision.OUTSIDE_DEPARTMENT
    assert exc_info.value.detail["code"] == "invalid_assignment"
    assert _audit_entries(db_session) == []


def test_owner_task_department_follows_assignee(tenancy, db_session, actor_of):
    owner = actor_of(tenancy.owner)
    task = tasks_service.create_task(db_session, owner, _payload(tenancy.viewer_d2.id))

    assert task.department_id == tenancy.d2.id
    assert task.company_id == tenancy.c1.id


def test_missing_assignee_is_invalid_assignment(tenancy, db_session, actor_of):
    with pytest.raises(InvalidAssignmentError) as exc_info:
        tasks_service.create_task(db_session, actor_of(tenancy.owner), _payload(99999))
    assert exc_info.value.detail["reason"] == "assignee_not_found"


def test_assignee_from_other_company_is_rejected(tenancy, db_session, actor_of):
    with pytest.raises(InvalidAssignmentError) as exc_info:
        tasks_service.create_task(db_session, actor_of(tenancy.owner), _payload(tenancy.other_owner.id))
    assert exc_info.value.decision is AssignmentDecision.OUTSIDE_COMPANY


def test_viewer_creates_tasks_for_themselves_only(tenancy, db_session, actor_of):
    viewer = actor_of(tenancy.viewer)
    task = tasks_service.create_task(db_session, viewer, _payload(viewer.id))
    assert task.assignee_id == viewer.id

    with pytest.raises(InvalidAssignmentError) as exc_info:
        tasks_service.create_task(db_session, viewer, _payload(tenancy.viewer2.id))
    assert exc_info.value.decision is AssignmentDecision.NOT_SELF


# --- read -------------------------------------------------------------------------


def test_get_task_missing_is_not_found(tenancy, db_session, actor_of):
    with pytest.raises(NotFoundError):
        tasks_service.get_task(db_session, actor_of(tenancy.owner), 99999)


def test_get_task_other_department_is_forbidden(tenancy, db_session, actor_of):
    with pytest.raises(ForbiddenError):
        tasks_service.get_task(db_session, actor_of(tenancy.admin), tenancy.t3.id)
    assert _audit_entries(db_session) == []


def test_get_task_records_read(tenancy, db_session, actor_of):
    viewer = actor_of(tenancy.viewer)
    task = tasks_service.get_task(db_session, viewer, tenancy.t2.id)
    assert task.id == tenancy.t2.id
    assert _audit_entries(db_session) == [(viewer.id, "read", "task", str(tenancy.t2.id))]


def test_list_tasks_is_bounded(tenancy, db_session, actor_of):
    tasks, total = tasks_service.list_tasks(db_session, actor_of(tenancy.viewer), TaskQuery())
    assert total == 2
    assert {t.id for t in tasks} == {tenancy.t1.id, tenancy.t2.id}

    tasks, total = tasks_service.list_tasks(db_session, actor_of(tenancy.owner), TaskQuery())
    assert total == 3

    tasks, total = tasks_service.list_tasks(db_session, actor_of(tenancy.other_owner), TaskQuery())
    assert (tasks, total) == ([], 0)


def test_list_tasks_filters_and_paginates(tenancy, db_session, actor_of):
    owner = actor_of(tenancy.owner)
    tasks_service.update_status(db_session, owner, tenancy.t1.id, TaskStatus.DONE)

    done, total = tasks_service.list_tasks(db_session, owner, TaskQuery(status=TaskStatus.DONE))
    assert total == 1
    assert done[0].id == tenancy.t1.id

    by_assignee, _ = tasks_service.list_tasks(db_session, owner, TaskQuery(assignee=tenancy.viewer_d2.id))
    assert [t.id for t in by_assignee] == [tenancy.t3.id]

    page, total = tasks_service.list_tasks(db_session, owner, TaskQuery(page=2, limit=2))
    assert total == 3
    assert len(page) == 1


def test_list_tasks_records_read_of_multiple(tenancy, db_session, actor_of):
    admin = actor_of(tenancy.admin)
    tasks_service.list_tasks(db_session, admin, TaskQuery())
    assert _audit_entries(db_session) == [(admin.id, "read", "task", "multiple")]


# --- update -----------------------------------------------------------------------


def test_viewer_updates_own_task(tenancy, db_session, actor_of):
    viewer = actor_of(tenancy.viewer)
    task = tasks_service.update_task(
        db_session, viewer, tenancy.t1.id, TaskUpdate(title="Renamed", priority=TaskPriority.HIGH)
    )
    assert task.title == "Renamed"
    assert task.priority == TaskPriority.HIGH.value
    assert _audit_entries(db_session) == [(viewer.id, "update", "task", str(tenancy.t1.id))]


def test_viewer_cannot_update_colleague_task(tenancy, db_session, actor_of):
    with pytest.raises(ForbiddenError):
        tasks_service.update_task(db_session, actor_of(tenancy.viewer), tenancy.t2.id, TaskUpdate(title="x"))
    assert db_session.get(Task, tenancy.t2.id).title == "Viewer2 task"
    assert _audit_entries(db_session) == []


def test_status_moves_in_any_order(tenancy, db_session, actor_of):
    admin = actor_of(tenancy.admin)
    for status in (TaskStatus.DONE, TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.DONE):
        assert tasks_service.update_status(db_session, admin, tenancy.t1.id, status).status == status.value


def test_reassignment_moves_task_department(tenancy, db_session, actor_of):
    owner = actor_of(tenancy.owner)
    task = tasks_service.update_task(db_session, owner, tenancy.t1.id, TaskUpdate(assignee_id=tenancy.viewer_d2.id))
    assert task.assignee_id == tenancy.viewer_d2.id
    assert task.department_id == tenancy.d2.id


def test_admin_cannot_reassign_across_departments(tenancy, db_session, actor_of):
    with pytest.raises(InvalidAssignmentError):
        tasks_service.update_task(
            db_session, actor_of(tenancy.admin), tenancy.t1.id, TaskUpdate(assignee_id=tenancy.viewer_d2.id)
        )
    assert db_session.get(Task, tenancy.t1.id).assignee_id == tenancy.viewer.id


def test_update_ignores_null_for_required_fields(tenancy, db_session, actor_of):
    task = tasks_service.update_task(
        db_session, actor_of(tenancy.admin), tenancy.t1.id, TaskUpdate(title=None, description=None)
    )
    assert task.title == "Viewer task"
    assert task.description is None


def test_update_missing_task_is_not_found(tenancy, db_session, actor_of):
    with pytest.raises(NotFoundError):
        tasks_service.update_task(db_session, actor_of(tenancy.owner), 99999, TaskUpdate(title="x"))


# --- delete -----------------------------------------------------------------------


def test_viewer_cannot_delete_own_task(tenancy, db_session, actor_of):
    with pytest.raises(ForbiddenError) as exc_info:
        tasks_service.delete_task(db_session, actor_of(tenancy.viewer), tenancy.t1.id)
    assert exc_info.value.detail == "Viewers cannot delete tasks"
    assert db_session.get(Task, tenancy.t1.id) is not None


def test_admin_cannot_delete_other_department_task(tenancy, db_session, actor_of):
    with pytest.raises(ForbiddenError):
        tasks_service.delete_task(db_session, actor_of(tenancy.admin), tenancy.t3.id)


def test_owner_deletes_task_then_audit_is_written(tenancy, db_session, actor_of):
    owner = actor_of(tenancy.owner)
    task_id = tenancy.t3.id
    tasks_service.delete_task(db_session, owner, task_id)

    assert db_session.get(Task, task_id) is None
    assert _audit_entries(db_session) == [(owner.id, "delete", "task", str(task_id))]
