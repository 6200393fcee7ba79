"""
Tasks component - Tasks, their dependencies, comments and time tracking.
"""

from .component import (
    DEPENDENCY_CYCLE,
    load_task,
    run_add_comment,
    run_add_dependency,
    run_create_task,
    run_delete_task,
    run_delete_time_entry,
    run_get_task,
    run_list_comments,
    run_list_dependencies,
    run_list_tasks,
    run_list_time_entries,
    run_log_time,
    run_remove_dependency,
    run_start_timer,
    run_stop_timer,
    run_update_task,
    run_update_time_entry,
)
from .models import (
    AddCommentInput,
    AddDependencyInput,
    CommentListOutput,
    CommentOutput,
    CreateTaskInput,
    DeleteOutput,
    DependencyListOutput,
    DependencyOutput,
    DependencyRefInput,
    ListTasksInput,
    LogTimeInput,
    StartTimerInput,
    TaskListOutput,
    TaskOutput,
    TaskRefInput,
    TimeEntryListOutput,
    TimeEntryOutput,
    TimeEntryRefInput,
    UpdateTaskInput,
    UpdateTimeEntryInput,
)
from .ports import TaskRepoPort, TimePort

__all__ = [
    "DEPENDENCY_CYCLE",
    "load_task",
    "run_list_tasks",
    "run_get_task",
    "run_create_task",
    "run_update_task",
    "run_delete_task",
    "run_list_dependencies",
    "run_add_dependency",
    "run_remove_dependency",
    "run_list_comments",
    "run_add_comment",
    "run_list_time_entries",
    "run_log_time",
    "run_start_timer",
    "run_stop_timer",
    "run_update_time_entry",
    "run_delete_time_entry",
    "AddCommentInput",
    "AddDependencyInput",
    "CommentListOutput",
    "CommentOutput",
    "CreateTaskInput",
    "DeleteOutput",
    "DependencyListOutput",
    "DependencyOutput",
    "DependencyRefInput",
    "ListTasksInput",
    "LogTimeInput",
    "StartTimerInput",
    "TaskListOutput",
    "TaskOutput",
    "TaskRefInput",
    "TimeEntryListOutput",
    "TimeEntryOutput",
    "TimeEntryRefInput",
    "UpdateTaskInput",
    "UpdateTimeEntryInput",
    "TaskRepoPort",
    "TimePort",
]
