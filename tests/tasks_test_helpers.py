"""In-memory stand-in for the Google Tasks API resource."""

import copy
from unittest.mock import MagicMock

from googleapiclient.errors import HttpError


def http_error(status: int, reason: str = "error") -> HttpError:
    """Build an HttpError the way the API client raises it."""
    resp = MagicMock()
    resp.status = status
    resp.reason = reason
    error = HttpError(resp, reason.encode())
    error.reason = reason
    return error


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeTasksService:
    """Mimics ``build("tasks", "v1")`` for tasklists().list and tasks().list/get/update."""

    def __init__(self, task_lists, tasks_by_list):
        self.task_lists = task_lists
        self.tasks_by_list = {k: [copy.deepcopy(t) for t in v] for k, v in tasks_by_list.items()}
        self.updates = []
        self.fail_updates_for = set()
        self.raise_on_update = {}

    def tasklists(self):
        service = self

        class _TaskLists:
            def list(self, maxResults=None):
                return _Request(lambda: {"items": copy.deepcopy(service.task_lists[:maxResults])})

        return _TaskLists()

    def tasks(self):
        service = self

        class _Tasks:
            def list(self, tasklist, **kwargs):
                return _Request(lambda: {"items": copy.deepcopy(service.tasks_by_list[tasklist])})

            def get(self, tasklist, task):
                return _Request(lambda: copy.deepcopy(service._find(tasklist, task)))

            def update(self, tasklist, task, body):
                def run():
                    if task in service.raise_on_update:
                        raise service.raise_on_update[task]
                    if task in service.fail_updates_for:
                        raise http_error(500, "Backend Error")
                    service.updates.append((tasklist, task, copy.deepcopy(body)))
                    stored = service._find(tasklist, task)
                    stored.clear()
                    stored.update(copy.deepcopy(body))
                    return copy.deepcopy(stored)

                return _Request(run)

        return _Tasks()

    def _find(self, tasklist, task_id):
        for item in self.tasks_by_list[tasklist]:
            if item["id"] == task_id:
                return item
        raise http_error(404, "Not Found")

    def task(self, tasklist, task_id):
        return copy.deepcopy(self._find(tasklist, task_id))
