from taskgate.models.tasks import AuditLog, Task, TaskPriority, TaskStatus
from taskgate.models.tenancy import Company, Department, User

__all__ = ["AuditLog", "Company", "Department", "Task", "TaskPriority", "TaskStatus", "User"]
