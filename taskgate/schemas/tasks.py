from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from taskgate.models.tasks import TaskPriority, TaskStatus
from taskgate.schemas.tenancy import DepartmentOut, UserOut


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = Field(min_length=1, max_length=100)
    assignee_id: int
    due_date: datetime | None = None


class TaskUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: str | None = Field(default=None, min_length=1, max_length=100)
    assignee_id: int | None = None
    due_date: datetime | None = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskQuery(BaseModel):
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee: int | None = None
    category: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    category: str
    assignee_id: int
    created_by_id: int
    company_id: int
    department_id: int
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime

    assignee: UserOut
    created_by: UserOut
    department: DepartmentOut


class TaskListOut(BaseModel):
    tasks: list[TaskOut]
    total: int
    page: int
    limit: int


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    action: str
    resource: str
    resource_id: str
    company_id: int
    department_id: int
    timestamp: datetime

    user: UserOut


class AuditLogListOut(BaseModel):
    logs: list[AuditLogOut]
    total: int
    page: int
    limit: int
