"""Resource identifiers and specifications for creating tasks."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ResourceKind(str, Enum):
    """The kind of resource an identifier refers to."""

    MODULE = "mod"
    WORKSPACE = "ws"
    TASK = "task"
    TASK_GROUP = "tg"
    LOG = "log"
    LOG_ATTR = "attr"
    GLOBAL = "global"


@dataclass(frozen=True)
class ResourceID:
    """Unique identifier of a resource, carrying its kind."""

    kind: ResourceKind
    serial: str

    def __str__(self) -> str:
        return f"{self.kind.value}-{self.serial}"


def new_id(kind: ResourceKind) -> ResourceID:
    """Create a fresh identifier of the given kind."""
    return ResourceID(kind=kind, serial=uuid.uuid4().hex[:12])


@dataclass
class Execution:
    """The program and arguments to execute.

    If program is empty the configured program runs with terraform_command.
    """

    program: str = ""
    terraform_command: list[str] = field(default_factory=list)
    args: list[str] = field(default_factory=list)


@dataclass
class Dependencies:
    """Asks that a task respect its module's dependencies within a group."""

    module_ids: list[ResourceID] = field(default_factory=list)
    inverse_dependency_order: bool = False


TaskCallback = Callable[[Any], None]


@dataclass
class Spec:
    """Specification for creating a task."""

    module_id: ResourceID | None = None
    workspace_id: ResourceID | None = None
    execution: Execution = field(default_factory=Execution)
    additional_execution: Execution | None = None
    identifier: str = ""
    path: str = ""
    env: list[str] = field(default_factory=list)
    blocking: bool = False
    exclusive: bool = False
    json: bool = False
    immediate: bool = False
    wait: bool = False
    description: str = ""
    # Called before the task exits successfully; returns the summary, and
    # raising places the task into the errored state.
    before_exited: Callable[[Any], Any] | None = None
    after_exited: TaskCallback | None = None
    after_queued: TaskCallback | None = None
    after_running: TaskCallback | None = None
    after_error: TaskCallback | None = None
    after_canceled: TaskCallback | None = None
    after_create: TaskCallback | None = None
    after_finish: TaskCallback | None = None
    dependencies: Dependencies | None = None
    # Tasks that must all exit successfully before this one is enqueued.
    depends_on: list[ResourceID] = field(default_factory=list)


SpecFunc = Callable[[ResourceID], Spec]