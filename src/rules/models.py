from typing import Any

from pydantic import BaseModel, Field


class AppRules(BaseModel):
    name: str
    rules_version: str

class CookieRules(BaseModel):
    secure: bool
    same_site: str

class AuthRules(BaseModel):
    password_min_length: int
    token_ttl_minutes: int
    cookie: CookieRules

class RbacRules(BaseModel):
    roles: dict[str, list[str]]
    public_permissions: list[str]

class ProjectsRules(BaseModel):
    code_pattern: str
    max_code_length: int

class SchedulingRules(BaseModel):
    near_critical_days: float = 1.0
    honor_planned_start: bool = True
    float_epsilon: float = 1e-6

class DefaultWidget(BaseModel):
    type: str
    title: str
    width: int = 1
    height: int = 1
    x: int = 0
    y: int = 0
    config: dict[str, Any] = Field(default_factory=dict)

class DashboardsRules(BaseModel):
    max_widgets: int
    default_refresh_seconds: int
    default_widgets: list[DefaultWidget]

class RateLimitWindow(BaseModel):
    window_seconds: int
    max_attempts: int | None = None
    max_requests: int | None = None

class RateLimitRules(BaseModel):
    login: RateLimitWindow

class OpsRules(BaseModel):
    data_dir_required: bool
    required_env: list[str]

class Rules(BaseModel):
    app: AppRules
    auth: AuthRules
    rbac: RbacRules
    projects: ProjectsRules
    scheduling: SchedulingRules
    dashboards: DashboardsRules
    rate_limits: RateLimitRules
    ops: OpsRules
