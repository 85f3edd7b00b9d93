"""Tests for the Google Tasks API wrapper."""

import socket
from datetime import date
from unittest.mock import MagicMock

import httplib2
import pytest
from google.auth.exceptions import RefreshError
from tasks_test_helpers import http_error

from move_gtasks.tasks import Task, TasksAPIError, TasksClient
from move_gtasks.tasks.client import format_due


@pytest.fixture
def mock_service():
    """Create a mock Google Tasks service."""
    return MagicMock()


@pytest.fixture
def client(mock_service):
    """TasksClient wired to the mock service."""
    return TasksClient(service=mock_service)


class TestTasksClientInit:
    """Construction rules."""

    def test_requires_auth_or_service(self):
        """Should refuse to build without a way to reach the API."""
        with pytest.raises(ValueError):
            TasksClient()

    def test_builds_service_lazily(self):
        """The API service is built from auth on first use."""
        auth = MagicMock()
        auth.build_service.return_value.tasklists().list().execute.return_value = {"items": []}

        client = TasksClient(auth=auth)
        auth.build_service.assert_not_called()

        client.list_task_lists()
        client.list_task_lists()
        auth.build_service.assert_called_once_with("tasks", "v1")


class TestTaskLists:
    """Listing task lists."""

    def test_list_task_lists(self, client, mock_service):
        """Parses items and asks for one bounded page."""
        mock_service.tasklists().list().execute.return_value = {
            "items": [
                {"id": "l1", "title": "My Tasks", "updated": "2022-04-05T10:00:00.000Z"},
                {"id": "l2", "title": "Work"},
            ]
        }

        lists = client.list_task_lists()

        mock_service.tasklists().list.assert_called_with(maxResults=10)
        assert (lists[0].id, lists[0].title) == ("l1", "My Tasks")
        assert (lists[1].id, lists[1].title) == ("l2", "Work")

    def test_no_items_key(self, client, mock_service):
        """An account without lists returns an empty list."""
        mock_service.tasklists().list().execute.return_value = {}
        assert client.list_task_lists() == []

    def test_api_error(self, client, mock_service):
        """HttpError becomes TasksAPIError."""
        mock_service.tasklists().list().execute.side_effect = http_error(503, "Unavailable")

        with pytest.raises(TasksAPIError, match="Unable to retrieve task lists") as exc_info:
            client.list_task_lists()
        assert exc_info.value.status_code == 503


class TestTasks:
    """Listing and updating tasks."""

    def test_list_tasks(self, client, mock_service):
        """Parses status and the date part of due."""
        mock_service.tasks().list().execute.return_value = {
            "items": [
                {
                    "id": "t1",
                    "title": "Pay rent",
                    "status": "needsAction",
                    "due": "2022-04-05T00:00:00.000Z",
                },
                {
                    "id": "t2",
                    "title": "Done",
                    "status": "completed",
                    "completed": "2022-04-04T08:00:00.000Z",
                },
            ]
        }

        tasks = client.list_tasks("l1")

        call = mock_service.tasks().list.call_args
        assert call.kwargs["tasklist"] == "l1"
        assert call.kwargs["showCompleted"] is True
        assert tasks[0].due == date(2022, 4, 5)
        assert tasks[0].is_completed is False
        assert tasks[1].due is None
        assert tasks[1].is_completed is True

    def test_unparseable_due_is_ignored(self, client, mock_service):
        """A bad due value is treated as no due date."""
        mock_service.tasks().list().execute.return_value = {
            "items": [{"id": "t1", "title": "x", "status": "needsAction", "due": "soon"}]
        }
        assert client.list_tasks("l1")[0].due is None

    def test_list_tasks_error(self, client, mock_service):
        """Fetch failures surface as TasksAPIError."""
        mock_service.tasks().list().execute.side_effect = http_error(404, "Not Found")
        with pytest.raises(TasksAPIError, match="Unable to get tasks"):
            client.list_tasks("missing")

    def test_update_due_date_keeps_other_fields(self, client, mock_service):
        """Only due changes in the body sent back."""
        current = {
            "id": "t1",
            "title": "Pay rent",
            "status": "needsAction",
            "notes": "landlord",
            "due": "2022-04-05T00:00:00.000Z",
            "etag": '"abc"',
        }
        expected_body = dict(current, due="2022-04-06T00:00:00.000Z")
        mock_service.tasks().get().execute.return_value = dict(current)
        mock_service.tasks().update().execute.return_value = expected_body

        task = client.update_due_date("t1", "l1", date(2022, 4, 6))

        sent = mock_service.tasks().update.call_args.kwargs
        assert sent == {"tasklist": "l1", "task": "t1", "body": expected_body}
        assert task == Task(
            id="t1",
            title="Pay rent",
            status="needsAction",
            due=date(2022, 4, 6),
        )

    def test_update_error(self, client, mock_service):
        """Update failures surface as TasksAPIError."""
        mock_service.tasks().get().execute.return_value = {"id": "t1", "title": "x"}
        mock_service.tasks().update().execute.side_effect = http_error(500, "Backend Error")
        with pytest.raises(TasksAPIError) as exc_info:
            client.update_due_date("t1", "l1", date(2022, 4, 6))
        assert exc_info.value.status_code == 500


def test_format_due():
    """Due dates are sent as midnight UTC timestamps."""
    assert format_due(date(2023, 1, 2)) == "2023-01-02T00:00:00.000Z"


class TestTransportErrors:
    """Failures that never produce an HTTP response."""

    def test_list_task_lists_timeout(self, client, mock_service):
        """A socket timeout becomes TasksAPIError."""
        mock_service.tasklists().list().execute.side_effect = socket.timeout("timed out")

        with pytest.raises(TasksAPIError, match="timed out") as exc_info:
            client.list_task_lists()
        assert exc_info.value.status_code is None

    def test_list_tasks_connection_error(self, client, mock_service):
        """httplib2 connection errors become TasksAPIError."""
        mock_service.tasks().list().execute.side_effect = httplib2.ServerNotFoundError(
            "Unable to find the server at tasks.googleapis.com"
        )
        with pytest.raises(TasksAPIError, match="Unable to get tasks"):
            client.list_tasks("l1")

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionResetError("connection reset"),
            httplib2.HttpLib2Error("broken"),
            RefreshError("invalid_grant: Token has been expired or revoked."),
        ],
    )
    def test_update_failures(self, client, mock_service, error):
        """Every failure on update is reported as TasksAPIError."""
        mock_service.tasks().get().execute.return_value = {"id": "t1", "title": "x"}
        mock_service.tasks().update().execute.side_effect = error

        with pytest.raises(TasksAPIError, match="Failed to update task t1"):
            client.update_due_date("t1", "l1", date(2022, 4, 6))
