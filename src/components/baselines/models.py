from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.entities import ScheduleBaseline, User
from src.domain.errors import OperationError

VarianceStatus = Literal["delayed", "ahead", "on_track"]


class ItemVariance(BaseModel):
    item_id: UUID
    name: str
    type: str
    baseline_start_date: date
    baseline_end_date: date
    current_start_date: date
    current_end_date: date
    start_variance_days: int
    finish_variance_days: int
    duration_variance_days: int
    status: VarianceStatus
    completion_percentage: float
    expected_percent: float
    percent_variance: float
    behind_schedule: bool


class ItemRef(BaseModel):
    item_id: UUID
    name: str
    type: str
    start_date: date
    end_date: date


class VarianceSummary(BaseModel):
    matched: int = 0
    delayed: int = 0
    ahead: int = 0
    on_track: int = 0
    added: int = 0
    removed: int = 0
    behind_schedule: int = 0
    max_finish_slip_days: int = 0
    average_finish_variance_days: float = 0.0
    baseline_finish_date: date | None = None
    current_finish_date: date | None = None
    schedule_variance_days: int | None = None


class VarianceReport(BaseModel):
    schedule_id: UUID
    baseline_id: UUID
    baseline_name: str
    captured_at: datetime
    as_of: date
    items: list[ItemVariance] = Field(default_factory=list)
    added: list[ItemRef] = Field(default_factory=list)
    removed: list[ItemRef] = Field(default_factory=list)
    summary: VarianceSummary = Field(default_factory=VarianceSummary)


# --- Inputs ---


@dataclass
class CreateBaselineInput:
    actor: User
    schedule_id: UUID
    name: str
    description: str = ""


@dataclass
class ListBaselinesInput:
    actor: User
    schedule_id: UUID


@dataclass
class BaselineRefInput:
    actor: User
    schedule_id: UUID
    baseline_id: UUID


@dataclass
class VarianceInput:
    """``baseline_id`` None selects the most recent baseline."""

    actor: User
    schedule_id: UUID
    baseline_id: UUID | None = None
    as_of: date | None = None


# --- Outputs ---


@dataclass
class BaselineOutput:
    baseline: ScheduleBaseline | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class BaselineListOutput:
    baselines: list[ScheduleBaseline] = field(default_factory=list)
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class VarianceOutput:
    report: VarianceReport | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class DeleteOutput:
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False
