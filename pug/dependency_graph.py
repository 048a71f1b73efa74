"""Create tasks in an order that respects their modules' dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Protocol

from pug.spec import ResourceID, Spec
from pug.task import Task, TaskError


class TaskCreator(Protocol):
    def create(self, spec: Spec) -> Task: ...


@dataclass(eq=False)
class _Node:
    """A module in the dependency graph, with the specs belonging to it."""

    dependencies: list[ResourceID]
    specs: list[Spec] = field(default_factory=list)
    created: list[ResourceID] = field(default_factory=list)
    incoming: list[_Node] = field(default_factory=list)
    outgoing: list[_Node] = field(default_factory=list)
    visited: bool = False
    tasks_created: bool = False


class _GraphBuilder:
    def __init__(self, creator: TaskCreator) -> None:
        self.creator = creator
        self.nodes: dict[ResourceID, _Node] = {}
        self.tasks: list[Task] = []
        self.create_errors: list[Exception] = []

    def add_spec(self, spec: Spec) -> None:
        if spec.module_id is None:
            raise ValueError("spec respecting module dependencies must belong to a module")
        node = self.nodes.get(spec.module_id)
        if node is None:
            deps = spec.dependencies.module_ids if spec.dependencies is not None else []
            node = _Node(dependencies=list(deps))
            self.nodes[spec.module_id] = node
        node.specs.append(spec)

    def visit(self, node: _Node) -> None:
        """Link a node to the nodes of the modules it depends upon."""
        node.visited = True
        for dep_id in node.dependencies:
            dep = self.nodes.get(dep_id)
            if dep is None:
                continue
            if not dep.visited:
                self.visit(dep)
            dep.incoming.append(node)
            node.outgoing.append(dep)

    def create_tasks(self, node: _Node, reverse: bool) -> None:
        """Create the tasks of a node after those it must wait for."""
        node.tasks_created = True
        depends_on: list[ResourceID] = []
        for neighbour in node.incoming if reverse else node.outgoing:
            if not neighbour.tasks_created:
                self.create_tasks(neighbour, reverse)
            depends_on.extend(neighbour.created)
        for spec in node.specs:
            task = self._create(replace(spec, depends_on=list(depends_on)))
            if task is not None:
                node.created.append(task.id)

    def _create(self, spec: Spec) -> Task | None:
        try:
            task = self.creator.create(spec)
        except Exception as exc:  # failures are collected, not fatal
            self.create_errors.append(exc)
            return None
        self.tasks.append(task)
        return task


def create_dependent_tasks(creator: Any, reverse: bool, *specs: Spec) -> list[Task]:
    """Create tasks from specs, each depending on the tasks of its module's dependencies.

    With reverse set, the order is inverted: a module's tasks wait for the
    tasks of the modules that depend on it, as needed when destroying.
    """
    builder = _GraphBuilder(creator)
    for spec in specs:
        builder.add_spec(spec)
    for node in builder.nodes.values():
        if not node.visited:
            builder.visit(node)
    for node in builder.nodes.values():
        if not node.tasks_created:
            builder.create_tasks(node, reverse)
    if not builder.tasks:
        raise TaskError(
            f"failed to create all {len(builder.create_errors)} tasks; see logs"
        )
    return builder.tasks