"""Global task runner limiting how many tasks run at once."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from pug.service import ListOptions
from pug.status import Status
from pug.task import Task, TaskError


class Runner:
    """Picks queued tasks to run.

    No more than max_tasks run at once, except immediate tasks, and at most
    one exclusive task runs at any time.
    """

    def __init__(self, max_tasks: int, tasks: Any) -> None:
        self.max_tasks = max_tasks
        self.tasks = tasks

    def runnable(self) -> list[Task]:
        """Return the queued tasks to start now, oldest first."""
        exclusive_taken = False
        running = self.tasks.list(ListOptions(status=[Status.RUNNING]))
        avail = self.max_tasks - len(running)

        queued = self.tasks.list(ListOptions(status=[Status.QUEUED], oldest=True))
        runnable: list[Task] = []
        for task in queued:
            # Immediate tasks are exempt from the maximum.
            if avail <= 0 and not task.immediate:
                continue
            if task.exclusive:
                if exclusive_taken:
                    continue
                exclusive_taken = True
                if self.tasks.list(ListOptions(exclusive=True, status=[Status.RUNNING])):
                    continue
            avail -= 1
            runnable.append(task)
        return runnable


class _WaitGroup:
    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self) -> None:
        with self._cond:
            self._count += 1

    def done(self) -> None:
        with self._cond:
            self._count -= 1
            self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout)


def start_runner(
    service: Any, max_tasks: int, logger: logging.Logger | None = None
) -> Callable[..., bool]:
    """Run queued tasks in the background.

    Returns a function that waits for started tasks to finish.
    """
    log = logger or logging.getLogger(__name__)
    runner = Runner(max_tasks, service)
    subscription = service.task_broker.subscribe()
    group = _WaitGroup()

    def run(wait: Callable[[], None]) -> None:
        try:
            wait()
        finally:
            group.done()

    def loop() -> None:
        for _ in subscription:
            for task in runner.runnable():
                try:
                    wait = task.start()
                except TaskError as exc:
                    log.error("starting task: %s (task=%s)", exc, task)
                    continue
                log.debug("started task %s", task)
                group.add()
                threading.Thread(target=run, args=(wait,), daemon=True).start()

    threading.Thread(target=loop, name="pug-runner", daemon=True).start()
    return group.wait