from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select

from taskgate.security.context import Actor
from taskgate.security.permissions import ResourceKind, Role

logger = logging.getLogger(__name__)

COMPANY_FIELD = "company_id"
DEPARTMENT_FIELD = "department_id"


@dataclass(frozen=True)
class Boundary:
    """Visibility boundary for listings: rows must have `field == value`."""

    field: str
    value: int | None


def boundary(actor: Actor, resource_kind: ResourceKind) -> Boundary:
    """
    Compute the pre-filter applied to listings of `resource_kind`.

    Owners see their whole company; admins and viewers see their department.
    Companies carry no department, so they are always bounded by company.
    """

    if actor.role is Role.OWNER or resource_kind is ResourceKind.COMPANY:
        return Boundary(field=COMPANY_FIELD, value=actor.company_id)
    return Boundary(field=DEPARTMENT_FIELD, value=actor.department_id)


def boundary_column(model: type, bound: Boundary) -> Any:
    """
    Resolve the boundary field to a column of `model`.

    Models whose own primary key plays the role of the field (companies for
    `company_id`, departments for `department_id`) declare it in `__scope_columns__`.
    """

    mapping: dict[str, str] = getattr(model, "__scope_columns__", {})
    return getattr(model, mapping.get(bound.field, bound.field))


def apply_boundary(stmt: Select, model: type, bound: Boundary) -> Select:
    logger.debug("Applying boundary %s=%s to %s", bound.field, bound.value, getattr(model, "__name__", model))
    return stmt.where(boundary_column(model, bound) == bound.value)
