from datetime import UTC, date, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleType = Literal["owner", "admin", "manager", "member", "viewer"]
UserStatus = Literal["active", "disabled"]
ProjectStatus = Literal["Planning", "Active", "On Hold", "Completed", "Cancelled"]
PhaseStatus = Literal["Not Started", "In Progress", "Completed", "On Hold"]
TaskStatus = Literal["Not Started", "In Progress", "On Hold", "Completed", "Cancelled"]
TaskPriority = Literal["Low", "Medium", "High", "Critical"]
DependencyType = Literal["FS", "SS", "FF", "SF"]
ScheduleStatus = Literal["Draft", "Active", "Archived"]
ScheduleItemType = Literal["Milestone", "Task", "Phase", "Summary"]
SCHEDULABLE_ITEM_TYPES = ("Task", "Milestone")
ScheduleItemStatus = Literal["Not Started", "In Progress", "Completed", "On Hold", "Delayed"]
SharePermission = Literal["view", "edit"]
BudgetStatus = Literal["Draft", "Approved", "Active", "Closed"]
ApprovalStatus = Literal["Pending", "Approved", "Rejected"]
PaymentStatus = Literal["Pending", "Paid", "Rejected"]
WidgetType = Literal[
    "project_summary",
    "task_status",
    "schedule_timeline",
    "budget_overview",
    "team_performance",
    "recent_activity",
    "upcoming_milestones",
    "risk_assessment",
    "weather_forecast",
    "document_activity",
    "quality_metrics",
    "safety_incidents",
    "custom_chart",
]


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored timestamps compare consistently."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# --- Company & Users ---

class Company(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    created_at: datetime = Field(default_factory=utcnow)

class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    display_name: str
    password_hash: str
    roles: list[RoleType] = Field(default_factory=list)
    status: UserStatus = "active"
    company_id: UUID | None = None
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# --- Projects ---

class Project(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    company_id: UUID
    name: str
    code: str
    description: str = ""
    client_name: str | None = None
    status: ProjectStatus = "Planning"
    start_date: date
    target_completion_date: date
    actual_completion_date: date | None = None
    budget: float = 0.0
    location: str | None = None
    project_type: str | None = None
    project_manager_id: UUID
    created_by: UUID
    tags: list[str] = Field(default_factory=list)
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class ProjectPhase(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    name: str
    description: str = ""
    order: int = 0
    start_date: date
    end_date: date
    status: PhaseStatus = "Not Started"
    completion_percentage: float = 0.0
    budget: float = 0.0

class ProjectMember(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    user_id: UUID
    role: str
    permissions: dict[str, str] = Field(default_factory=dict)
    joined_at: datetime = Field(default_factory=utcnow)
    removed_at: datetime | None = None
    created_by: UUID

class ProjectMetric(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    name: str
    category: str
    value: float
    target: float | None = None
    unit: str | None = None
    date: date

# --- Tasks ---

class Task(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    phase_id: UUID | None = None
    parent_task_id: UUID | None = None
    title: str
    description: str = ""
    status: TaskStatus = "Not Started"
    priority: TaskPriority = "Medium"
    assigned_to: UUID
    created_by: UUID
    start_date: date
    due_date: date
    completed_date: date | None = None
    estimated_hours: float = 0.0
    actual_hours: float = 0.0
    completion_percentage: float = 0.0
    tags: list[str] = Field(default_factory=list)
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class TaskDependency(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    predecessor_task_id: UUID
    successor_task_id: UUID
    type: DependencyType = "FS"
    lag: float = 0.0
    created_by: UUID
    created_at: datetime = Field(default_factory=utcnow)

class TaskComment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    task_id: UUID
    content: str
    created_by: UUID
    created_at: datetime = Field(default_factory=utcnow)

class TimeEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    task_id: UUID
    user_id: UUID
    description: str = ""
    start_time: datetime
    end_time: datetime | None = None
    duration_minutes: int = 0
    billable: bool = False
    is_running: bool = False

# --- Schedules ---

class Schedule(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    name: str = "Main Schedule"
    description: str = ""
    start_date: date
    end_date: date
    baseline_start_date: date | None = None
    baseline_end_date: date | None = None
    status: ScheduleStatus = "Draft"
    created_by: UUID
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class ScheduleItem(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    schedule_id: UUID
    parent_item_id: UUID | None = None
    task_id: UUID | None = None
    name: str
    description: str = ""
    type: ScheduleItemType = "Task"
    start_date: date
    end_date: date
    baseline_start_date: date | None = None
    baseline_end_date: date | None = None
    duration: int = 1
    completion_percentage: float = 0.0
    status: ScheduleItemStatus = "Not Started"
    assigned_to: UUID | None = None
    order: int = 0
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class ScheduleDependency(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    predecessor_id: UUID
    successor_id: UUID
    type: DependencyType = "FS"
    lag: float = 0.0
    created_by: UUID
    created_at: datetime = Field(default_factory=utcnow)

class ScheduleCalendarEvent(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    schedule_id: UUID
    schedule_item_id: UUID | None = None
    title: str
    description: str = ""
    start_at: datetime
    end_at: datetime
    all_day: bool = False
    location: str | None = None
    type: str | None = None
    created_by: UUID
    created_at: datetime = Field(default_factory=utcnow)

class BaselineItem(BaseModel):
    original_item_id: UUID
    name: str
    type: ScheduleItemType
    start_date: date
    end_date: date
    duration: int
    completion_percentage: float = 0.0

class ScheduleBaseline(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    schedule_id: UUID
    name: str
    description: str = ""
    created_by: UUID
    items: list[BaselineItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

# --- Dashboards ---

class Widget(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    type: WidgetType
    title: str
    width: int = Field(default=1, ge=1, le=4)
    height: int = Field(default=1, ge=1, le=4)
    x: int = 0
    y: int = 0
    config: dict[str, Any] = Field(default_factory=dict)
    data_source: str | None = None
    refresh_interval: int = 300

class DashboardShare(BaseModel):
    user_id: UUID
    permission: SharePermission = "view"

class Dashboard(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    project_id: UUID
    company_id: UUID
    created_by: UUID
    is_default: bool = False
    columns: int = Field(default=3, ge=1, le=4)
    widgets: list[Widget] = Field(default_factory=list)
    shared_with: list[DashboardShare] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# --- Financials ---

class BudgetItem(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    quantity: float = Field(default=1.0, gt=0)
    unit: str | None = None
    unit_price: float = Field(ge=0)

class BudgetCategory(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    amount: float = Field(default=0.0, ge=0)
    items: list[BudgetItem] = Field(default_factory=list)

class Budget(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    name: str
    description: str = ""
    total_amount: float = Field(gt=0)
    start_date: date
    end_date: date
    status: BudgetStatus = "Draft"
    categories: list[BudgetCategory] = Field(default_factory=list)
    created_by: UUID
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class Expense(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    budget_id: UUID | None = None
    category_id: UUID | None = None
    description: str
    amount: float = Field(gt=0)
    vendor: str = ""
    payment_method: str = "Credit Card"
    payment_status: PaymentStatus = "Pending"
    approval_status: ApprovalStatus = "Pending"
    notes: str = ""
    submitted_by: UUID
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    date: date
