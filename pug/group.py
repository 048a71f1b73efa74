"""Task groups: tasks created together from several specs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pug.dependency_graph import create_dependent_tasks
from pug.spec import ResourceID, ResourceKind, Spec, new_id
from pug.status import Status
from pug.task import Task, TaskError

MULTI_COMMAND = "multi"


@dataclass(eq=False)
class Group:
    """A set of tasks created together."""

    id: ResourceID = field(default_factory=lambda: new_id(ResourceKind.TASK_GROUP))
    created: datetime = field(default_factory=datetime.now)
    command: str = ""
    tasks: list[Task] = field(default_factory=list)
    create_errors: list[Exception] = field(default_factory=list)

    def __str__(self) -> str:
        return self.command

    def includes_task(self, task_id: ResourceID) -> bool:
        return any(task.id == task_id for task in self.tasks)

    def finished(self) -> int:
        """Number of tasks in a final state."""
        return sum(1 for task in self.tasks if task.state.is_final())

    def exited(self) -> int:
        return sum(1 for task in self.tasks if task.state is Status.EXITED)

    def errored(self) -> int:
        return sum(1 for task in self.tasks if task.state is Status.ERRORED)


def _shared_setting(specs: tuple[Spec, ...], setting: Any, name: str) -> bool:
    values = {setting(spec) for spec in specs}
    if len(values) > 1:
        raise ValueError(f"not all specs share same {name} setting")
    return values.pop()


def new_group(service: Any, *specs: Spec) -> Group:
    """Create a group of tasks using the service to create each one."""
    if not specs:
        raise ValueError("no specs provided")
    respect_dependencies = _shared_setting(
        specs, lambda s: s.dependencies is not None, "respect-module-dependencies"
    )
    inverse = _shared_setting(
        specs,
        lambda s: s.dependencies is not None and s.dependencies.inverse_dependency_order,
        "inverse-dependency-order",
    )

    group = Group()
    if respect_dependencies:
        group.tasks = create_dependent_tasks(service, inverse, *specs)
    else:
        for spec in specs:
            try:
                group.tasks.append(service.create(spec))
            except Exception as exc:  # failures are recorded on the group
                group.create_errors.append(exc)
    if not group.tasks:
        raise TaskError("all tasks failed to be created")

    commands = {str(task) for task in group.tasks}
    group.command = commands.pop() if len(commands) == 1 else MULTI_COMMAND
    return group


def sort_groups_by_created(a: Group, b: Group) -> int:
    """Order groups newest first."""
    if a.created > b.created:
        return -1
    return 1