"""
Critical path component - CPM over schedule items and project tasks.
"""

from ._analysis import analyze_schedule, analyze_tasks, assess_risks
from .component import DEPENDENCY_CYCLE, run_schedule_cpm, run_task_cpm
from .models import (
    CriticalPathOutput,
    CriticalPathReport,
    ItemTiming,
    RiskFactor,
    ScheduleCPMInput,
    Suggestion,
    TaskCPMInput,
)

__all__ = [
    "DEPENDENCY_CYCLE",
    "analyze_schedule",
    "analyze_tasks",
    "assess_risks",
    "run_schedule_cpm",
    "run_task_cpm",
    "CriticalPathOutput",
    "CriticalPathReport",
    "ItemTiming",
    "RiskFactor",
    "ScheduleCPMInput",
    "Suggestion",
    "TaskCPMInput",
]
