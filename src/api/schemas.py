from datetime import date, datetime
from datetime import date as Date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UpdateRequest(BaseModel):
    """Partial update body; only the fields the client sent become changes."""

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# --- Auth & Users ---
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    display_name: str
    roles: list[str] = []
    status: str
    company_id: UUID | None = None
    last_login_at: datetime | None = None
    created_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RegisterRequest(BaseModel):
    email: str
    password: str
    display_name: str
    company_name: str


class RegisterResponse(Token):
    user: UserResponse
    company_id: UUID


class UserCreateRequest(BaseModel):
    email: str
    display_name: str | None = None
    password: str
    roles: list[str] = ["member"]


class UserUpdateRequest(BaseModel):
    roles: list[str] | None = None
    status: str | None = None  # "active", "disabled"
    display_name: str | None = None


# --- Projects ---
class ProjectCreateRequest(BaseModel):
    name: str
    code: str
    start_date: date
    target_completion_date: date
    project_manager_id: UUID | None = None
    description: str = ""
    client_name: str | None = None
    status: str = "Planning"
    budget: float = 0.0
    location: str | None = None
    project_type: str | None = None
    tags: list[str] = []
    custom_fields: dict[str, Any] = {}


class ProjectUpdateRequest(UpdateRequest):
    name: str | None = None
    description: str | None = None
    client_name: str | None = None
    status: str | None = None
    start_date: date | None = None
    target_completion_date: date | None = None
    actual_completion_date: date | None = None
    budget: float | None = None
    location: str | None = None
    project_type: str | None = None
    project_manager_id: UUID | None = None
    tags: list[str] | None = None
    custom_fields: dict[str, Any] | None = None


class PhaseCreateRequest(BaseModel):
    name: str
    start_date: date
    end_date: date
    description: str = ""
    order: int | None = None
    status: str = "Not Started"
    completion_percentage: float = 0.0
    budget: float = 0.0


class PhaseUpdateRequest(UpdateRequest):
    name: str | None = None
    description: str | None = None
    order: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None
    completion_percentage: float | None = None
    budget: float | None = None


class MemberCreateRequest(BaseModel):
    user_id: UUID
    role: str
    permissions: dict[str, str] = {}


class MemberUpdateRequest(UpdateRequest):
    role: str | None = None
    permissions: dict[str, str] | None = None


class MetricCreateRequest(BaseModel):
    name: str
    category: str
    value: float
    date: date
    target: float | None = None
    unit: str | None = None


class MetricUpdateRequest(UpdateRequest):
    name: str | None = None
    category: str | None = None
    value: float | None = None
    date: Date | None = None
    target: float | None = None
    unit: str | None = None


# --- Tasks ---
class TaskCreateRequest(BaseModel):
    title: str
    start_date: date
    due_date: date
    assigned_to: UUID | None = None
    description: str = ""
    status: str = "Not Started"
    priority: str = "Medium"
    phase_id: UUID | None = None
    parent_task_id: UUID | None = None
    estimated_hours: float = 0.0
    completion_percentage: float = 0.0
    tags: list[str] = []


class TaskUpdateRequest(UpdateRequest):
    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    assigned_to: UUID | None = None
    phase_id: UUID | None = None
    parent_task_id: UUID | None = None
    start_date: date | None = None
    due_date: date | None = None
    estimated_hours: float | None = None
    completion_percentage: float | None = None
    tags: list[str] | None = None


class TaskDependencyCreateRequest(BaseModel):
    predecessor_task_id: UUID
    type: str = "FS"
    lag: float = 0.0


class CommentCreateRequest(BaseModel):
    content: str


class TimeEntryCreateRequest(BaseModel):
    start_time: datetime
    end_time: datetime | None = None
    duration_minutes: int | None = None
    description: str = ""
    billable: bool = False


class TimerStartRequest(BaseModel):
    description: str = ""
    billable: bool = False


class TimeEntryUpdateRequest(UpdateRequest):
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    billable: bool | None = None


# --- Schedules ---
class ScheduleCreateRequest(BaseModel):
    start_date: date
    end_date: date
    name: str = "Main Schedule"
    description: str = ""
    status: str = "Draft"


class ScheduleUpdateRequest(UpdateRequest):
    name: str | None = None
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None


class ItemCreateRequest(BaseModel):
    name: str
    start_date: date
    end_date: date | None = None
    duration: int | None = None
    type: str = "Task"
    description: str = ""
    parent_item_id: UUID | None = None
    task_id: UUID | None = None
    completion_percentage: float = 0.0
    status: str = "Not Started"
    assigned_to: UUID | None = None
    order: int | None = None


class ItemUpdateRequest(UpdateRequest):
    name: str | None = None
    description: str | None = None
    type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    duration: int | None = None
    parent_item_id: UUID | None = None
    task_id: UUID | None = None
    completion_percentage: float | None = None
    status: str | None = None
    assigned_to: UUID | None = None
    order: int | None = None


class ItemDependencyCreateRequest(BaseModel):
    predecessor_id: UUID
    type: str = "FS"
    lag: float = 0.0


class EventCreateRequest(BaseModel):
    title: str
    start_at: datetime
    end_at: datetime
    description: str = ""
    all_day: bool = False
    location: str | None = None
    type: str | None = None
    schedule_item_id: UUID | None = None


class EventUpdateRequest(UpdateRequest):
    title: str | None = None
    description: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    all_day: bool | None = None
    location: str | None = None
    type: str | None = None
    schedule_item_id: UUID | None = None


class BaselineCreateRequest(BaseModel):
    name: str
    description: str = ""


# --- Dashboards ---
class DashboardCreateRequest(BaseModel):
    name: str
    description: str = ""
    columns: int = 3
    widgets: list[dict[str, Any]] | None = None
    is_default: bool = False


class DashboardUpdateRequest(UpdateRequest):
    name: str | None = None
    description: str | None = None
    columns: int | None = None
    widgets: list[dict[str, Any]] | None = None
    is_default: bool | None = None


class ShareRequest(BaseModel):
    user_id: UUID
    permission: str = "view"


class WidgetCreateRequest(BaseModel):
    type: str
    title: str | None = None
    width: int = 1
    height: int = 1
    x: int = 0
    y: int = 0
    config: dict[str, Any] = Field(default_factory=dict)
    data_source: str | None = None
    refresh_interval: int | None = None

    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class WidgetUpdateRequest(UpdateRequest):
    type: str | None = None
    title: str | None = None
    width: int | None = None
    height: int | None = None
    x: int | None = None
    y: int | None = None
    config: dict[str, Any] | None = None
    data_source: str | None = None
    refresh_interval: int | None = None


# --- Financials ---
class BudgetCreateRequest(BaseModel):
    name: str
    total_amount: float
    start_date: date
    end_date: date
    description: str = ""
    status: str = "Draft"
    categories: list[dict[str, Any]] = Field(default_factory=list)


class BudgetUpdateRequest(UpdateRequest):
    name: str | None = None
    description: str | None = None
    total_amount: float | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None
    categories: list[dict[str, Any]] | None = None


class ExpenseCreateRequest(BaseModel):
    description: str
    amount: float
    date: Date
    budget_id: UUID | None = None
    category_id: UUID | None = None
    vendor: str = ""
    payment_method: str = "Credit Card"
    payment_status: str = "Pending"
    notes: str = ""


class ExpenseUpdateRequest(UpdateRequest):
    description: str | None = None
    amount: float | None = None
    date: Date | None = None
    budget_id: UUID | None = None
    category_id: UUID | None = None
    vendor: str | None = None
    payment_method: str | None = None
    payment_status: str | None = None
    notes: str | None = None


class ExpenseReviewRequest(BaseModel):
    notes: str | None = None
