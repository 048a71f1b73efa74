from datetime import datetime, timedelta
from functools import cmp_to_key

import pytest

from pug.group import MULTI_COMMAND, Group, new_group, sort_groups_by_created
from pug.spec import Dependencies, Execution, ResourceKind, Spec, new_id
from pug.status import Status
from pug.task import TaskError, TaskFactory


class FakeService:
    def __init__(self, fail=()):
        self.factory = TaskFactory()
        self.fail = set(fail)

    def create(self, spec):
        if spec.identifier in self.fail:
            raise RuntimeError("cannot create")
        return self.factory.new_task(spec)


def _plan_spec(**kwargs):
    return Spec(execution=Execution(terraform_command=["plan"]), **kwargs)


def test_no_specs():
    with pytest.raises(ValueError, match="no specs provided"):
        new_group(FakeService())


def test_mixed_dependency_settings():
    mod = new_id(ResourceKind.MODULE)
    with pytest.raises(ValueError, match="respect-module-dependencies"):
        new_group(FakeService(), Spec(module_id=mod, dependencies=Dependencies()), Spec())


def test_mixed_inverse_settings():
    mod = new_id(ResourceKind.MODULE)
    with pytest.raises(ValueError, match="inverse-dependency-order"):
        new_group(
            FakeService(),
            Spec(module_id=mod, dependencies=Dependencies()),
            Spec(module_id=mod, dependencies=Dependencies(inverse_dependency_order=True)),
        )


def test_same_command_names_group():
    specs = [_plan_spec(), _plan_spec()]
    group = new_group(FakeService(), *specs)
    assert group.command == "plan"
    assert str(group) == "plan"
    assert len(group.tasks) == len(specs)
    assert group.create_errors == []


def test_different_commands_make_multi():
    group = new_group(
        FakeService(),
        _plan_spec(),
        Spec(execution=Execution(terraform_command=["apply"])),
    )
    assert group.command == MULTI_COMMAND


def test_partial_failure_recorded():
    group = new_group(FakeService(fail={"bad"}), _plan_spec(), _plan_spec(identifier="bad"))
    assert len(group.tasks) == 1
    assert len(group.create_errors) == 1
    assert isinstance(group.create_errors[0], RuntimeError)


def test_all_failed():
    with pytest.raises(TaskError, match="all tasks failed to be created"):
        new_group(FakeService(fail={"bad"}), _plan_spec(identifier="bad"))


def test_with_dependencies():
    mod_a = new_id(ResourceKind.MODULE)
    mod_b = new_id(ResourceKind.MODULE)
    group = new_group(
        FakeService(),
        _plan_spec(module_id=mod_a, dependencies=Dependencies()),
        _plan_spec(module_id=mod_b, dependencies=Dependencies(module_ids=[mod_a])),
    )
    a_task = next(t for t in group.tasks if t.module_id == mod_a)
    b_task = next(t for t in group.tasks if t.module_id == mod_b)
    assert b_task.depends_on == [a_task.id]
    assert a_task.depends_on == []


def test_counts_and_membership():
    group = new_group(FakeService(), _plan_spec(), _plan_spec(), _plan_spec())
    first, second, third = group.tasks
    assert group.finished() == 0
    first.update_state(Status.EXITED)
    second.update_state(Status.ERRORED)
    assert group.exited() == 1
    assert group.errored() == 1
    assert group.finished() == group.exited() + group.errored()
    third.update_state(Status.CANCELED)
    assert group.finished() == len(group.tasks)
    assert group.includes_task(third.id)
    assert not group.includes_task(new_id(ResourceKind.TASK))


def test_sort_groups_newest_first():
    base = datetime(2024, 1, 1)
    old = Group(created=base)
    new = Group(created=base + timedelta(minutes=1))
    assert sorted([old, new], key=cmp_to_key(sort_groups_by_created)) == [new, old]
    assert sort_groups_by_created(new, old) == -1