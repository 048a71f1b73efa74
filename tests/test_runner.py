import sys
import threading

import pytest

from pug.enqueuer import start_enqueuer
from pug.runner import Runner, start_runner
from pug.service import TaskService
from pug.spec import Execution, Spec
from pug.status import Status
from pug.task import Task


class FakeRunnerLister:
    def __init__(self, queued=(), running=(), exclusive=()):
        self.queued = list(queued)
        self.running = list(running)
        self.exclusive = list(exclusive)

    def list(self, opts):
        if opts.exclusive:
            return self.exclusive
        if opts.status == [Status.QUEUED]:
            return self.queued
        if opts.status == [Status.RUNNING]:
            return self.running
        return []


@pytest.fixture
def tasks():
    return {
        "t1": Task(),
        "t2": Task(),
        "t3": Task(),
        "ex1": Task(exclusive=True),
        "ex2": Task(exclusive=True),
        "immediate": Task(immediate=True),
    }


CASES = [
    ("all queued tasks are runnable", 3, ["t1", "t2", "t3"], [], [], ["t1", "t2", "t3"]),
    ("max tasks is one", 1, ["t1", "t2", "t3"], [], [], ["t1"]),
    ("max tasks already running", 2, ["t3"], ["t1", "t2"], [], []),
    ("only one available slot", 2, ["t2", "t3"], ["t1"], [], ["t2"]),
    ("one of two queued exclusive tasks", 3, ["ex1", "ex2"], [], [], ["ex1"]),
    ("exclusive task already running", 3, ["ex2"], [], ["ex1"], []),
    ("only one exclusive task", 3, ["ex1", "ex2"], [], [], ["ex1"]),
    ("non-exclusive tasks and one exclusive", 4, ["t1", "t2", "ex1", "t3"], [], [],
     ["t1", "t2", "ex1", "t3"]),
    ("immediate despite max running", 2, ["immediate"], ["t1", "t2"], [], ["immediate"]),
]


@pytest.mark.parametrize(
    "max_tasks,queued,running,exclusive,want",
    [c[1:] for c in CASES],
    ids=[c[0] for c in CASES],
)
def test_runnable(tasks, max_tasks, queued, running, exclusive, want):
    lister = FakeRunnerLister(
        queued=[tasks[k] for k in queued],
        running=[tasks[k] for k in running],
        exclusive=[tasks[k] for k in exclusive],
    )
    got = Runner(max_tasks, lister).runnable()
    assert got == [tasks[k] for k in want]


def test_runnable_does_not_modify_queue(tasks):
    queued = [tasks["t1"], tasks["t2"]]
    lister = FakeRunnerLister(queued=queued)
    Runner(1, lister).runnable()
    assert lister.queued == [tasks["t1"], tasks["t2"]]


def test_start_runner_runs_tasks(tmp_path):
    script = tmp_path / "hello.py"
    script.write_text("print('hello')\n")
    service = TaskService()
    exited = threading.Event()
    start_enqueuer(service)
    wait = start_runner(service, 2)
    try:
        task = service.create(
            Spec(
                execution=Execution(program=sys.executable, args=[str(script)]),
                after_exited=lambda t: exited.set(),
            )
        )
        assert exited.wait(timeout=10)
        assert task.wait(timeout=5) is Status.EXITED
        assert wait(5)
        assert task.new_reader(False).read() == b"hello\n"
        assert service.counter() == 0
    finally:
        service.task_broker.close()