"""Exceptions for the tasks module."""


class TasksError(Exception):
    """Base exception for all tasks-related errors."""

    pass


class TasksAPIError(TasksError):
    """Raised when a Google Tasks API call fails."""

    def __init__(self, message: str, status_code: int | None = None, reason: str | None = None):
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)


class NoTaskListsError(TasksError):
    """Raised when the account has no task lists at all."""

    def __init__(self):
        super().__init__("No task lists found.")


class TaskListNotFoundError(TasksError):
    """Raised when no task list has the requested title."""

    def __init__(self, title: str):
        self.title = title
        super().__init__(f'There was no task list called "{title}"')
