"""Google Tasks access and the due-date mover.

Usage:
    from move_gtasks.tasks import TasksClient, migrate

    client = TasksClient(auth=auth)
    report = migrate(client, "My Tasks", resolve_dates("tomorrow", "today"))
    for line in report.lines():
        print(line)
"""

from __future__ import annotations

from move_gtasks.tasks.client import Task, TaskList, TasksClient
from move_gtasks.tasks.exceptions import (
    NoTaskListsError,
    TaskListNotFoundError,
    TasksAPIError,
    TasksError,
)
from move_gtasks.tasks.migrate import MigrationReport, MoveResult, migrate, select_tasks

__all__ = [
    "TasksClient",
    "Task",
    "TaskList",
    "migrate",
    "select_tasks",
    "MigrationReport",
    "MoveResult",
    "TasksError",
    "TasksAPIError",
    "NoTaskListsError",
    "TaskListNotFoundError",
]
