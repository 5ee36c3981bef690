"""
HTTP-level errors raised by dependencies and services.

They subclass `HTTPException` so FastAPI renders them directly, while callers
(and tests) can still tell a forbidden request from an invalid assignment by type.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from taskgate.security.task_gate import AssignmentDecision

_ASSIGNMENT_MESSAGES = {
    AssignmentDecision.ASSIGNEE_NOT_FOUND: "Assignee not found",
    AssignmentDecision.OUTSIDE_COMPANY: "Assignee does not belong to your company",
    AssignmentDecision.OUTSIDE_DEPARTMENT: "Cannot assign task to user outside your department",
    AssignmentDecision.NOT_SELF: "Viewers can only assign tasks to themselves",
}


class UnauthenticatedError(HTTPException):
    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "Access denied") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidAssignmentError(HTTPException):
    def __init__(self, decision: AssignmentDecision) -> None:
        self.decision = decision
        super().__init__(
            status_code=422,
            detail={
                "code": "invalid_assignment",
                "reason": decision.value,
                "message": _ASSIGNMENT_MESSAGES.get(decision, "Invalid assignment"),
            },
        )
