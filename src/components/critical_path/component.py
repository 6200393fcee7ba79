import logging

from src.components.projects import ProjectRepoPort, load_project
from src.components.schedules import ScheduleRepoPort, load_schedule
from src.components.tasks import TaskRepoPort
from src.domain.cpm import CycleError
from src.domain.errors import OperationError
from src.domain.policy import PolicyEngine
from src.rules.models import SchedulingRules

from ._analysis import analyze_schedule, analyze_tasks
from .models import CriticalPathOutput, ScheduleCPMInput, TaskCPMInput

logger = logging.getLogger(__name__)

DEPENDENCY_CYCLE = "dependency_cycle"


def _cycle_error(e: CycleError) -> OperationError:
    return OperationError(DEPENDENCY_CYCLE, str(e))


def run_schedule_cpm(
    inp: ScheduleCPMInput,
    schedules: ScheduleRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    rules: SchedulingRules,
) -> CriticalPathOutput:
    schedule, _, errors = load_schedule(
        schedules, projects, inp.schedule_id, inp.actor, policy, "schedules:read"
    )
    if errors or schedule is None:
        return CriticalPathOutput(errors=errors)

    try:
        report = analyze_schedule(
            schedule,
            schedules.list_items(schedule.id),
            schedules.list_dependencies(schedule.id),
            rules,
        )
    except CycleError as e:
        logger.warning("Critical path for schedule %s failed: %s", schedule.id, e)
        return CriticalPathOutput(errors=[_cycle_error(e)])

    logger.info(
        "Critical path computed for schedule %s: %d critical of %d items",
        schedule.id,
        len(report.critical_path_items),
        len(report.items),
    )
    return CriticalPathOutput(report=report, success=True)


def run_task_cpm(
    inp: TaskCPMInput,
    tasks: TaskRepoPort,
    projects: ProjectRepoPort,
    policy: PolicyEngine,
    rules: SchedulingRules,
) -> CriticalPathOutput:
    project, errors = load_project(projects, inp.project_id, inp.actor, policy, "tasks:read")
    if errors or project is None:
        return CriticalPathOutput(errors=errors)

    try:
        report = analyze_tasks(
            project,
            tasks.list_by_project(project.id),
            tasks.list_dependencies_for_project(project.id),
            rules,
        )
    except CycleError as e:
        logger.warning("Task critical path for project %s failed: %s", project.id, e)
        return CriticalPathOutput(errors=[_cycle_error(e)])

    return CriticalPathOutput(report=report, success=True)
