"""
Declarative per-endpoint security rules, loaded from YAML.

Each route rule names the permission requests it accepts. Rules are resolved
against the defaults once, at load time, so matching a request is a lookup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from taskgate.security.permissions import PermissionRequest


class AuthConfig(BaseModel):
    provider: Literal["dummy", "jwt"] = "dummy"
    authorization_header: str = "Authorization"
    bearer_prefix: str = "Bearer"
    jwt_algorithms: list[str] = Field(default_factory=lambda: ["HS256"])


class DefaultRule(BaseModel):
    # Endpoints are public unless a rule declares otherwise.
    auth_required: bool = False
    permissions: list[PermissionRequest] = Field(default_factory=list)
    scope_boundary: bool = False


class RouteRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    auth_required: bool | None = None
    permissions: list[PermissionRequest] = Field(default_factory=list)
    scope_boundary: bool | None = None

    @field_validator("methods")
    @classmethod
    def _upper_methods(cls, value: list[str]) -> list[str]:
        return [m.upper() for m in value]


class SecurityConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    default: DefaultRule = Field(default_factory=DefaultRule)
    routes: list[RouteRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def _no_duplicate_routes(self) -> SecurityConfigModel:
        seen: set[tuple[str, str]] = set()
        for rule in self.routes:
            for method in rule.methods:
                key = (rule.path, method)
                if key in seen:
                    raise ValueError(f"Duplicate security rule for {method} {rule.path}")
                seen.add(key)
        return self


@dataclass(frozen=True)
class EffectiveRule:
    """
    Fully-resolved rule (defaults applied) for a particular request.

    `permissions` is a disjunction: the request is allowed if any entry is satisfied.
    """

    auth_required: bool
    permissions: tuple[PermissionRequest, ...]
    scope_boundary: bool


@dataclass(frozen=True)
class _CompiledRoute:
    template: str
    pattern: re.Pattern[str]
    methods: frozenset[str]
    rule: EffectiveRule

    @property
    def is_template(self) -> bool:
        return "{" in self.template


def _template_pattern(template: str) -> re.Pattern[str]:
    # "/tasks/{task_id}" -> r"^/tasks/[^/]+$"
    parts = re.split(r"\{[^/]+\}", template)
    return re.compile("^" + "[^/]+".join(re.escape(p) for p in parts) + "$")


def _resolve(route: RouteRule, default: DefaultRule) -> EffectiveRule:
    permissions = tuple(route.permissions or default.permissions)
    auth_required = default.auth_required if route.auth_required is None else route.auth_required

    return EffectiveRule(
        # Declaring permissions implies authentication.
        auth_required=auth_required or bool(permissions),
        permissions=permissions,
        scope_boundary=default.scope_boundary if route.scope_boundary is None else route.scope_boundary,
    )


class SecurityConfig:
    """Validated config plus (path, method) matching."""

    def __init__(self, model: SecurityConfigModel):
        self.model = model

        default = model.default
        self._fallback = EffectiveRule(
            auth_required=default.auth_required or bool(default.permissions),
            permissions=tuple(default.permissions),
            scope_boundary=default.scope_boundary,
        )

        compiled = [
            _CompiledRoute(
                template=route.path,
                pattern=_template_pattern(route.path),
                methods=frozenset(route.methods),
                rule=_resolve(route, default),
            )
            for route in model.routes
        ]
        # Literal paths win over templates, so "/users/me" is never taken by "/users/{id}".
        self._routes = sorted(compiled, key=lambda c: c.is_template)

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    def match(self, path: str, method: str) -> EffectiveRule:
        method = method.upper()
        for route in self._routes:
            if method in route.methods and route.pattern.match(path):
                return route.rule
        return self._fallback


def load_security_config(path: Path) -> SecurityConfig:
    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}

    if "security" not in raw:
        raise ValueError(f"Missing top-level 'security' key in config: {path}")

    return SecurityConfig(SecurityConfigModel.model_validate(raw["security"]))
