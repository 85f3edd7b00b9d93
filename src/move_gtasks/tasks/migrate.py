"""Move incomplete tasks from one day to another.

One linear pass per run: find the target list, pick the tasks due on the
``from`` day, rewrite their due date to the ``to`` day. A failed update is
recorded and the pass continues with the next task.

Tasks are matched on day-of-year only. A task due 2023-04-05 matches
``from=2022-04-05``, and around year ends day 365 of a leap year
(December 30) matches December 31 of a common year.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from move_gtasks.dates import TimeTargets
from move_gtasks.tasks.client import Task, TaskList, TasksClient
from move_gtasks.tasks.exceptions import NoTaskListsError, TaskListNotFoundError, TasksAPIError

logger = logging.getLogger(__name__)


@dataclass
class MoveResult:
    """Outcome of moving one task."""

    task: Task
    to: date
    error: TasksAPIError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def describe(self) -> str:
        target = self.to.isoformat()
        if self.success:
            return f"Moved Task: {self.task.title} ({self.task.id}) to {target}"
        return (
            f"Failed to move task: {self.task.title} ({self.task.id}) to {target} "
            f"with error: {self.error}"
        )


@dataclass
class MigrationReport:
    """Everything a run did, in processing order."""

    task_list: TaskList
    targets: TimeTargets
    selected: list[Task] = field(default_factory=list)
    results: list[MoveResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def moved(self) -> list[MoveResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[MoveResult]:
        return [r for r in self.results if not r.success]

    def lines(self) -> list[str]:
        """One line per task attempt (or per candidate in a dry run)."""
        if self.dry_run:
            return [
                f"Would move task: {t.title} ({t.id}) to {self.targets.to.isoformat()}"
                for t in self.selected
            ]
        return [r.describe() for r in self.results]


def find_task_list(task_lists: list[TaskList], title: str) -> TaskList:
    """Return the first list whose title matches exactly.

    Raises:
        NoTaskListsError: If ``task_lists`` is empty.
        TaskListNotFoundError: If no list has that title.
    """
    if not task_lists:
        raise NoTaskListsError()

    for task_list in task_lists:
        if task_list.title == title:
            return task_list

    raise TaskListNotFoundError(title)


def is_eligible(task: Task, from_day: date) -> bool:
    """True for an incomplete task due on the same day-of-year as ``from_day``."""
    if task.is_completed or task.due is None:
        return False
    return task.due.timetuple().tm_yday == from_day.timetuple().tm_yday


def select_tasks(tasks: Iterable[Task], from_day: date) -> list[Task]:
    """Filter ``tasks`` down to the ones that should move."""
    return [task for task in tasks if is_eligible(task, from_day)]


def migrate(
    client: TasksClient,
    list_name: str,
    targets: TimeTargets,
    dry_run: bool = False,
) -> MigrationReport:
    """Move every eligible task in ``list_name`` from ``targets.from_`` to ``targets.to``.

    Args:
        client: Tasks API client.
        list_name: Exact title of the list to work on.
        targets: The resolved from/to days.
        dry_run: Select tasks but don't update anything.

    Returns:
        MigrationReport with one result per attempted update.

    Raises:
        NoTaskListsError: If the account has no lists.
        TaskListNotFoundError: If no list is called ``list_name``.
        TasksAPIError: If the lists or the tasks can't be fetched.
    """
    task_list = find_task_list(client.list_task_lists(), list_name)
    logger.info(f"Using task list {task_list.title} ({task_list.id})")

    tasks = client.list_tasks(task_list.id)
    selected = select_tasks(tasks, targets.from_)
    logger.info(
        f"{len(selected)} of {len(tasks)} tasks due {targets.from_.isoformat()} "
        f"will move to {targets.to.isoformat()}"
    )

    report = MigrationReport(
        task_list=task_list,
        targets=targets,
        selected=selected,
        dry_run=dry_run,
    )
    if dry_run:
        return report

    for task in selected:
        try:
            client.update_due_date(task.id, task_list.id, targets.to)
        except TasksAPIError as e:
            logger.error(f"Failed to move task {task.title!r} ({task.id}): {e}")
            report.results.append(MoveResult(task=task, to=targets.to, error=e))
            continue
        logger.debug(f"Moved task {task.id} to {targets.to.isoformat()}")
        report.results.append(MoveResult(task=task, to=targets.to))

    return report
