"""Google Tasks API client implementation."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from move_gtasks.google import GoogleOAuth
from move_gtasks.tasks.exceptions import TasksAPIError

logger = logging.getLogger(__name__)

TASK_LIST_PAGE_SIZE = 10
TASK_PAGE_SIZE = 100

# Failures that reach us from .execute() without an HTTP response: sockets,
# httplib2 connection errors, and token refreshes done by google-auth.
TRANSPORT_ERRORS = (OSError, httplib2.HttpLib2Error, TransportError, RefreshError)


@dataclass
class TaskList:
    """Represents a Google Tasks list."""

    id: str
    title: str


@dataclass
class Task:
    """Represents a Google Task."""

    id: str
    title: str
    status: str  # "needsAction" or "completed"
    due: date | None = None

    @property
    def is_completed(self) -> bool:
        """Check if task is completed."""
        return self.status == "completed"


def format_due(due: date) -> str:
    """Render a due date the way the Tasks API stores it (RFC 3339, midnight UTC)."""
    return f"{due.isoformat()}T00:00:00.000Z"


class TasksClient:
    """Google Tasks API client with OAuth authentication.

    Only the calls the task mover needs: list task lists, list the tasks of
    one list, and rewrite a task's due date.

    Usage:
        client = TasksClient(auth=GoogleOAuth.from_config(config))
        lists = client.list_task_lists()
        tasks = client.list_tasks(lists[0].id)
        client.update_due_date(tasks[0].id, lists[0].id, date(2022, 4, 6))
    """

    def __init__(self, auth: GoogleOAuth | None = None, service: Any = None) -> None:
        """Initialize Tasks client.

        Args:
            auth: Authorized GoogleOAuth used to build the API service.
            service: Pre-built Tasks API resource (tests pass a mock).
        """
        if auth is None and service is None:
            raise ValueError("TasksClient needs either auth or service")
        self._auth = auth
        self._service = service

    def _get_service(self) -> Any:
        """Get or create Tasks API service."""
        if self._service is None:
            self._service = self._auth.build_service("tasks", "v1")
        return self._service

    def _api_error(self, error: Exception, context: str) -> TasksAPIError:
        """Convert an HttpError or transport failure into a TasksAPIError."""
        if isinstance(error, HttpError):
            status_code = error.resp.status
            reason = error.reason if hasattr(error, "reason") else str(error)
            logger.error(f"Google Tasks API error (status={status_code}): {reason}")
            return TasksAPIError(f"{context}: {reason}", status_code=status_code, reason=reason)

        reason = str(error) or type(error).__name__
        logger.error(f"Google Tasks API request failed ({type(error).__name__}): {reason}")
        return TasksAPIError(f"{context}: {reason}", reason=reason)

    # =========================================================================
    # Task Lists
    # =========================================================================

    def list_task_lists(self, max_results: int = TASK_LIST_PAGE_SIZE) -> list[TaskList]:
        """List task lists (first page only).

        Raises:
            TasksAPIError: If the API call fails.
        """
        service = self._get_service()
        try:
            results = service.tasklists().list(maxResults=max_results).execute()
        except (HttpError, *TRANSPORT_ERRORS) as e:
            raise self._api_error(e, "Unable to retrieve task lists") from e
        items = results.get("items", [])

        return [TaskList(id=item["id"], title=item.get("title", "")) for item in items]

    # =========================================================================
    # Tasks
    # =========================================================================

    def list_tasks(self, tasklist_id: str, max_results: int = TASK_PAGE_SIZE) -> list[Task]:
        """List tasks in a task list.

        Only the first page is read; lists with more than ``max_results``
        tasks are truncated.

        Raises:
            TasksAPIError: If the API call fails.
        """
        service = self._get_service()
        try:
            results = (
                service.tasks()
                .list(
                    tasklist=tasklist_id,
                    showCompleted=True,
                    showHidden=False,
                    maxResults=max_results,
                )
                .execute()
            )
        except (HttpError, *TRANSPORT_ERRORS) as e:
            raise self._api_error(e, f"Unable to get tasks from list {tasklist_id}") from e
        items = results.get("items", [])

        if results.get("nextPageToken"):
            logger.warning(
                f"Task list {tasklist_id} has more than {max_results} tasks; "
                "only the first page is considered"
            )

        return [self._parse_task(item) for item in items]

    def update_due_date(self, task_id: str, tasklist_id: str, due: date) -> Task:
        """Set a task's due date, leaving every other field untouched.

        Raises:
            TasksAPIError: If fetching or updating the task fails.
        """
        service = self._get_service()

        try:
            current = service.tasks().get(tasklist=tasklist_id, task=task_id).execute()
            current["due"] = format_due(due)
            result = (
                service.tasks().update(tasklist=tasklist_id, task=task_id, body=current).execute()
            )
        except (HttpError, *TRANSPORT_ERRORS) as e:
            raise self._api_error(e, f"Failed to update task {task_id}") from e

        return self._parse_task(result)

    def _parse_task(self, data: dict) -> Task:
        """Parse task from API response."""
        due = None
        if data.get("due"):
            with contextlib.suppress(ValueError):
                # Due date is in RFC 3339 format; only the date part is meaningful
                due_str = data["due"].split("T")[0]
                due = date.fromisoformat(due_str)

        return Task(
            id=data["id"],
            title=data.get("title", ""),
            status=data.get("status", "needsAction"),
            due=due,
        )
