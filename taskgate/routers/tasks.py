from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from taskgate.db.session import get_db
from taskgate.models.tasks import Task
from taskgate.schemas.tasks import TaskCreate, TaskListOut, TaskOut, TaskQuery, TaskStatusUpdate, TaskUpdate
from taskgate.security.context import Actor
from taskgate.security.dependencies import get_current_actor
from taskgate.services import tasks as tasks_service

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> Task:
    return tasks_service.create_task(db, actor, payload)


@router.get("", response_model=TaskListOut)
def list_tasks(
    query: Annotated[TaskQuery, Query()],
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> TaskListOut:
    # The session filter also narrows these selects; the service applies the boundary explicitly.
    tasks, total = tasks_service.list_tasks(db, actor, query)
    return TaskListOut(
        tasks=[TaskOut.model_validate(t) for t in tasks],
        total=total,
        page=query.page,
        limit=query.limit,
    )


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: int, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)) -> Task:
    return tasks_service.get_task(db, actor, task_id)


@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> Task:
    return tasks_service.update_task(db, actor, task_id, payload)


@router.patch("/{task_id}/status", response_model=TaskOut)
def update_task_status(
    task_id: int,
    payload: TaskStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> Task:
    return tasks_service.update_status(db, actor, task_id, payload.status)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: int, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)) -> Response:
    tasks_service.delete_task(db, actor, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
