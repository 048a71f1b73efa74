"""Task service: stores tasks and groups and publishes their changes."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pug.group import Group, new_group
from pug.spec import ResourceID, Spec
from pug.status import Status
from pug.task import UPDATED_EVENT, Task, TaskFactory

CREATED_EVENT = "created"
DELETED_EVENT = "deleted"

T = TypeVar("T")

_CLOSED = object()


class NotFoundError(KeyError):
    """The requested resource does not exist."""


@dataclass(frozen=True)
class Event(Generic[T]):
    """A change to a resource."""

    type: str
    payload: T


class Broker(Generic[T]):
    """Fans published events out to every subscriber."""

    def __init__(self) -> None:
        self._subscribers: list[queue.Queue] = []
        self._lock = threading.Lock()

    def subscribe(self) -> Iterator[Event[T]]:
        """Return an iterator of events published from now on."""
        q: queue.Queue = queue.Queue()
        with self._lock:
            self._subscribers.append(q)
        return self._drain(q)

    @staticmethod
    def _drain(q: queue.Queue) -> Iterator[Event[T]]:
        while True:
            item = q.get()
            if item is _CLOSED:
                return
            yield item

    def publish(self, event: str, payload: T) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for q in subscribers:
            q.put(Event(event, payload))

    def close(self) -> None:
        """End every subscription."""
        with self._lock:
            subscribers, self._subscribers = self._subscribers, []
        for q in subscribers:
            q.put(_CLOSED)


class _Table(Generic[T]):
    def __init__(self, broker: Broker[T]) -> None:
        self._rows: dict[ResourceID, T] = {}
        self._lock = threading.RLock()
        self._broker = broker

    def add(self, key: ResourceID, value: T) -> None:
        with self._lock:
            self._rows[key] = value
        self._broker.publish(CREATED_EVENT, value)

    def update(self, key: ResourceID, fn: Callable[[T], None]) -> T:
        with self._lock:
            value = self.get(key)
            fn(value)
        self._broker.publish(UPDATED_EVENT, value)
        return value

    def delete(self, key: ResourceID) -> None:
        with self._lock:
            value = self._rows.pop(key, None)
        if value is not None:
            self._broker.publish(DELETED_EVENT, value)

    def get(self, key: ResourceID) -> T:
        with self._lock:
            try:
                return self._rows[key]
            except KeyError:
                raise NotFoundError(key) from None

    def list(self) -> list[T]:
        with self._lock:
            return list(self._rows.values())


@dataclass
class ListOptions:
    """Filters and ordering for listing tasks."""

    # Only tasks with this module path.
    path: str | None = None
    # Only tasks with one of these statuses; None means any.
    status: list[Status] | None = None
    # Oldest first when true, newest first otherwise.
    oldest: bool = False
    # Only blocking tasks when true.
    blocking: bool = False
    # Only exclusive tasks when true.
    exclusive: bool = False


class TaskService:
    """Creates, stores, enqueues and cancels tasks and task groups."""

    def __init__(
        self,
        program: str = "terraform",
        workdir: str = "",
        user_envs: list[str] | None = None,
        user_args: list[str] | None = None,
        terragrunt: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.task_broker: Broker[Task] = Broker()
        self.group_broker: Broker[Group] = Broker()
        self._tasks: _Table[Task] = _Table(self.task_broker)
        self._groups: _Table[Group] = _Table(self.group_broker)
        self._counter = 0
        self._counter_lock = threading.Lock()
        self.factory = TaskFactory(
            program=program,
            workdir=workdir,
            user_envs=list(user_envs or []),
            user_args=list(user_args or []),
            terragrunt=terragrunt,
            publisher=self.task_broker,
            on_finish=self._task_finished,
        )

    def _task_finished(self, task: Task) -> None:
        with self._counter_lock:
            self._counter -= 1
        if task.state is not Status.EXITED and task.err is not None:
            self.logger.error("task failed: %s (task=%s)", task.err, task)
        else:
            self.logger.info("completed task %s", task)

    def create(self, spec: Spec) -> Task:
        """Create a pending task; with spec.wait, block until it finishes."""
        task = self.factory.new_task(spec)
        self.logger.info("created task %s", task)
        with self._counter_lock:
            self._counter += 1
        self._tasks.add(task.id, task)
        if spec.after_create is not None:
            spec.after_create(task)
        if spec.wait:
            task.wait()
        return task

    def create_group(self, *specs: Spec) -> Group:
        """Create a task group from one or more specs."""
        group = new_group(self, *specs)
        self.logger.debug("created task group %s", group)
        self.add_group(group)
        return group

    def add_group(self, group: Group) -> None:
        self._groups.add(group.id, group)

    def enqueue(self, task_id: ResourceID) -> Task:
        """Move a task onto the global queue."""
        try:
            task = self._tasks.update(task_id, lambda t: t.update_state(Status.QUEUED))
        except NotFoundError as exc:
            self.logger.error("enqueuing task: %s", exc)
            raise
        self.logger.debug("enqueued task %s", task)
        return task

    def list(self, opts: ListOptions | None = None) -> list[Task]:
        opts = opts or ListOptions()
        tasks = [
            task
            for task in self._tasks.list()
            if (opts.path is None or opts.path == task.path)
            and (opts.status is None or task.state in opts.status)
            and (not opts.blocking or task.blocking)
            and (not opts.exclusive or task.exclusive)
        ]
        tasks.sort(key=lambda t: t.updated, reverse=not opts.oldest)
        return tasks

    def list_groups(self) -> list[Group]:
        return self._groups.list()

    def get(self, task_id: ResourceID) -> Task:
        return self._tasks.get(task_id)

    def get_group(self, group_id: ResourceID) -> Group:
        return self._groups.get(group_id)

    def cancel(self, task_id: ResourceID) -> Task:
        try:
            task = self._tasks.get(task_id)
            task.cancel()
        except Exception as exc:
            self.logger.error("canceling task %s: %s", task_id, exc)
            raise
        self.logger.info("canceled task %s", task)
        return task

    def delete(self, task_id: ResourceID) -> None:
        self._tasks.delete(task_id)

    def counter(self) -> int:
        """Number of live tasks: created and not yet finished."""
        with self._counter_lock:
            return self._counter


__all__: list[Any] = [
    "Broker",
    "Event",
    "ListOptions",
    "NotFoundError",
    "TaskService",
]