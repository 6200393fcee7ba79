"""
Critical path input/output models.

Reports are pydantic models so the API can return them as they are.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.entities import User
from src.domain.errors import OperationError

RiskLevel = Literal["high", "medium"]
SuggestionKind = Literal["split_or_add_resources", "review_lag"]


class ItemTiming(BaseModel):
    item_id: UUID
    name: str
    type: str
    duration: float
    early_start: float
    early_finish: float
    late_start: float
    late_finish: float
    early_start_date: date
    early_finish_date: date
    late_start_date: date
    late_finish_date: date
    total_float: float
    free_float: float
    is_critical: bool
    is_near_critical: bool
    is_rollup: bool = False
    planned_start_date: date
    planned_end_date: date
    completion_percentage: float = 0.0


class RiskFactor(BaseModel):
    item_id: UUID
    name: str
    level: RiskLevel
    reason: str


class Suggestion(BaseModel):
    kind: SuggestionKind
    message: str
    item_id: UUID | None = None
    related_item_id: UUID | None = None


class CriticalPathReport(BaseModel):
    project_id: UUID
    schedule_id: UUID | None = None
    anchor_date: date
    items: list[ItemTiming] = Field(default_factory=list)
    critical_path_items: list[UUID] = Field(default_factory=list)
    critical_path_length: float = 0.0
    project_length: int = 0
    critical_path_percentage: float = 0.0
    forecast_finish_date: date | None = None
    finish_variance_days: int | None = None
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    optimization_suggestions: list[Suggestion] = Field(default_factory=list)


# --- Inputs ---


@dataclass
class ScheduleCPMInput:
    actor: User
    schedule_id: UUID


@dataclass
class TaskCPMInput:
    actor: User
    project_id: UUID


# --- Outputs ---


@dataclass
class CriticalPathOutput:
    report: CriticalPathReport | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False
