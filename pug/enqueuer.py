"""Decides which pending tasks move onto the global queue."""

from __future__ import annotations

import threading
from typing import Any

from pug.service import ListOptions, NotFoundError
from pug.spec import ResourceID
from pug.status import Status
from pug.task import Task


class Enqueuer:
    """Selects pending tasks that may be queued.

    A task can be queued if it is immediate, or if neither its workspace nor
    its module is blocked by another task and all the tasks it depends on
    have exited successfully.
    """

    def __init__(self, tasks: Any) -> None:
        self.tasks = tasks

    def enqueuable(self) -> list[Task]:
        """Return the pending tasks to move into the queued state."""
        active = self.tasks.list(ListOptions(status=[Status.QUEUED, Status.RUNNING]))
        blocked_modules: set[ResourceID] = set()
        blocked_workspaces: set[ResourceID] = set()
        for task in active:
            if task.blocking:
                if task.module_id is not None:
                    blocked_modules.add(task.module_id)
                if task.workspace_id is not None:
                    blocked_workspaces.add(task.workspace_id)

        pending = self.tasks.list(ListOptions(status=[Status.PENDING], oldest=True))
        enqueue: list[Task] = []
        for task in pending:
            if task.immediate:
                enqueue.append(task)
                continue
            if task.workspace_id is not None and task.workspace_id in blocked_workspaces:
                continue
            if task.module_id is not None and task.module_id in blocked_modules:
                continue
            if not self._dependencies_met(task):
                continue
            enqueue.append(task)
            if task.blocking:
                if task.workspace_id is not None:
                    blocked_workspaces.add(task.workspace_id)
                if task.module_id is not None:
                    blocked_modules.add(task.module_id)
        return enqueue

    def _dependencies_met(self, task: Task) -> bool:
        for dep_id in task.depends_on:
            try:
                dependency = self.tasks.get(dep_id)
            except NotFoundError:
                return False
            if dependency.state is Status.EXITED:
                continue
            if dependency.state in (Status.CANCELED, Status.ERRORED):
                # A failed dependency fails this task too.
                task.stdout.write(b"task dependency failed")
                task.update_state(Status.CANCELED)
            return False
        return True


def start_enqueuer(service: Any) -> threading.Thread:
    """Enqueue tasks whenever a task event occurs, in a background thread."""
    enqueuer = Enqueuer(service)
    subscription = service.task_broker.subscribe()

    def loop() -> None:
        for _ in subscription:
            for task in enqueuer.enqueuable():
                try:
                    service.enqueue(task.id)
                except NotFoundError:
                    continue

    thread = threading.Thread(target=loop, name="pug-enqueuer", daemon=True)
    thread.start()
    return thread