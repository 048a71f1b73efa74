"""Tasks: executions of a CLI program, and the factory that creates them."""

from __future__ import annotations

import io
import os
import signal
import subprocess
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from pug.buffer import OutputBuffer
from pug.spec import Execution, ResourceID, ResourceKind, Spec, new_id
from pug.status import Status, StatusTimestamps

UPDATED_EVENT = "updated"

TaskCallback = Callable[["Task"], None]


class TaskError(Exception):
    """A task could not be run or did not complete successfully."""


def _describe_exit(returncode: int) -> str:
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status {returncode}"


def _pump(source: Any, sinks: list[OutputBuffer]) -> None:
    with source:
        for chunk in iter(lambda: source.read(65536), b""):
            for sink in sinks:
                sink.write(chunk)


@dataclass(eq=False)
class Task:
    """An execution of a CLI program."""

    id: ResourceID = field(default_factory=lambda: new_id(ResourceKind.TASK))
    module_id: ResourceID | None = None
    workspace_id: ResourceID | None = None
    identifier: str = ""
    program: str = ""
    args: list[str] = field(default_factory=list)
    additional_execution: Execution | None = None
    path: str = ""
    blocking: bool = False
    state: Status = Status.PENDING
    json: bool = False
    immediate: bool = False
    additional_env: list[str] = field(default_factory=list)
    depends_on: list[ResourceID] = field(default_factory=list)
    summary: Any = None
    description: str = ""
    exclusive: bool = False
    terragrunt: bool = False
    created: datetime = field(default_factory=datetime.now)
    updated: datetime = field(default_factory=datetime.now)
    err: BaseException | None = None
    spec: Spec | None = None
    after_create: TaskCallback | None = None
    after_queued: TaskCallback | None = None
    after_running: TaskCallback | None = None
    before_exited: Callable[["Task"], Any] | None = None
    after_exited: TaskCallback | None = None
    after_error: TaskCallback | None = None
    after_canceled: TaskCallback | None = None
    after_finish: TaskCallback | None = None
    stdout: OutputBuffer = field(default_factory=OutputBuffer, repr=False)
    combined: OutputBuffer = field(default_factory=OutputBuffer, repr=False)

    _proc: subprocess.Popen | None = field(default=None, init=False, repr=False)
    _lock: Any = field(default_factory=threading.RLock, init=False, repr=False)
    _finished: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )
    _timestamps: dict[Status, StatusTimestamps] = field(
        default_factory=lambda: {Status.PENDING: StatusTimestamps(started=datetime.now())},
        init=False,
        repr=False,
    )
    _on_update: TaskCallback | None = field(default=None, init=False, repr=False)
    _on_finish: TaskCallback | None = field(default=None, init=False, repr=False)

    def __str__(self) -> str:
        return self.description

    def new_reader(self, combined: bool = False) -> io.BytesIO:
        """Copy of the output so far; combined includes stderr."""
        return (self.combined if combined else self.stdout).new_reader()

    def new_streamer(self) -> Iterator[bytes]:
        """Stream combined output; ends when the task finishes."""
        return self.combined.stream()

    def is_active(self) -> bool:
        return self.state in (Status.QUEUED, Status.RUNNING)

    def elapsed(self, status: Status) -> timedelta:
        """How long the task has spent in the given status."""
        ts = self._timestamps.get(status)
        if ts is None:
            return timedelta(0)
        return ts.elapsed()

    def wait(self, timeout: float | None = None) -> Status:
        """Block until the task finishes; raise its error if it failed."""
        if not self._finished.wait(timeout):
            raise TimeoutError("timed out waiting for task to finish")
        if self.state is not Status.EXITED and self.err is not None:
            raise self.err
        return self.state

    def log_value(self) -> dict[str, Any]:
        """Attributes describing the task for structured logging."""
        attrs: dict[str, Any] = {
            "id": str(self.id),
            "program": self.program,
            "args": list(self.args),
        }
        if self.terragrunt:
            attrs["deps"] = list(self.depends_on)
        if self.summary is not None:
            log_value = getattr(self.summary, "log_value", None)
            if callable(log_value):
                value = log_value()
                if isinstance(value, dict):
                    attrs.update(value)
                else:
                    attrs["summary"] = self.summary
            else:
                attrs["summary"] = str(self.summary)
        return attrs

    def cancel(self) -> None:
        """Cancel the task; a running task is sent an interrupt."""
        with self._lock:
            if self.state.is_final():
                raise TaskError("task has already finished")
            if self.state in (Status.PENDING, Status.QUEUED):
                self.update_state(Status.CANCELED)
                return
            try:
                self._proc.send_signal(signal.SIGINT)
            except OSError as exc:
                raise TaskError(f"interrupting task: {exc}") from exc

    def start(self) -> Callable[[], None]:
        """Start a queued task; return a function that waits for it to finish."""
        with self._lock:
            if self.state is not Status.QUEUED:
                raise TaskError("invalid state transition")
            try:
                proc, pumps = self._execute(self.program, self.args)
            except OSError as exc:
                self.err = TaskError(f"starting task: {exc}")
                self.update_state(Status.ERRORED)
                raise self.err from exc
            self._proc = proc
            self.update_state(Status.RUNNING)

        def wait() -> None:
            state = Status.EXITED
            returncode = self._finish(proc, pumps)
            if returncode != 0:
                state = Status.ERRORED
                self.err = TaskError(f"task failed: {_describe_exit(returncode)}")
            elif self.additional_execution is not None:
                extra = self.additional_execution
                try:
                    extra_proc, extra_pumps = self._execute(extra.program, extra.args)
                    extra_code = self._finish(extra_proc, extra_pumps)
                    if extra_code != 0:
                        state = Status.ERRORED
                        self.err = TaskError(
                            f"task failed: {_describe_exit(extra_code)}"
                        )
                except OSError as exc:
                    state = Status.ERRORED
                    self.err = TaskError(f"task failed: {exc}")
            with self._lock:
                self.update_state(state)

        return wait

    def _environment(self) -> dict[str, str]:
        # Inherited variables take precedence over the additional ones.
        env: dict[str, str] = {}
        for entry in self.additional_env:
            key, _, value = entry.partition("=")
            env[key] = value
        env.update(os.environ)
        return env

    def _execute(
        self, program: str, args: list[str]
    ) -> tuple[subprocess.Popen, list[threading.Thread]]:
        proc = subprocess.Popen(
            [program, *args],
            cwd=self.path or None,
            env=self._environment(),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=0,
        )
        pumps = [
            threading.Thread(
                target=_pump, args=(proc.stdout, [self.stdout, self.combined]), daemon=True
            ),
            threading.Thread(target=_pump, args=(proc.stderr, [self.combined]), daemon=True),
        ]
        for pump in pumps:
            pump.start()
        return proc, pumps

    @staticmethod
    def _finish(proc: subprocess.Popen, pumps: list[threading.Thread]) -> int:
        for pump in pumps:
            pump.join()
        return proc.wait()

    def _record_end(self, now: datetime) -> None:
        ts = self._timestamps.get(self.state, StatusTimestamps())
        ts.ended = now
        self._timestamps[self.state] = ts

    def update_state(self, state: Status) -> None:
        """Move the task into a new status, firing the relevant callbacks."""
        now = datetime.now()
        self.updated = now

        self._record_end(now)
        self._timestamps[state] = StatusTimestamps(started=now)

        # Close output before before_exited, which may read until the end.
        if state.is_final():
            self.stdout.close()
            self.combined.close()

        if state is Status.EXITED and self.before_exited is not None:
            try:
                self.summary = self.before_exited(self)
            except Exception as exc:
                state = Status.ERRORED
                self.err = exc

        self.state = state
        if self._on_update is not None:
            self._on_update(self)

        if self.state.is_final():
            self._record_end(now)
            self._finished.set()
            if self._on_finish is not None:
                self._on_finish(self)
            if self.after_finish is not None:
                self.after_finish(self)

        callback = {
            Status.QUEUED: self.after_queued,
            Status.RUNNING: self.after_running,
            Status.CANCELED: self.after_canceled,
            Status.ERRORED: self.after_error,
            Status.EXITED: self.after_exited,
        }.get(state)
        if callback is not None:
            callback(self)


@dataclass
class TaskFactory:
    """Creates tasks from specs using the configured program and options."""

    program: str = "terraform"
    workdir: str = ""
    user_envs: list[str] = field(default_factory=list)
    user_args: list[str] = field(default_factory=list)
    terragrunt: bool = False
    publisher: Any = None
    on_finish: TaskCallback | None = None

    def new_task(self, spec: Spec) -> Task:
        """Build a pending task from a spec."""
        if spec.workspace_id is not None and spec.module_id is None:
            raise ValueError("workspace ID cannot be provided without module ID")

        if self.workdir or spec.path:
            path = os.path.normpath(os.path.join(self.workdir, spec.path))
        else:
            path = ""

        if spec.execution.program == "":
            program = self.program
            args = list(spec.execution.terraform_command)
        else:
            program = spec.execution.program
            args = []
        args += self.user_args
        args += spec.execution.args

        description = spec.description
        if not description:
            if spec.execution.terraform_command:
                description = " ".join(spec.execution.terraform_command)
            else:
                description = spec.execution.program

        additional_env = [*self.user_envs, *spec.env]
        if program == "terragrunt" and self.terragrunt:
            additional_env.append("TERRAGRUNT_FORWARD_TF_STDOUT=1")
            args.append("--terragrunt-non-interactive")

        task = Task(
            module_id=spec.module_id,
            workspace_id=spec.workspace_id,
            identifier=spec.identifier,
            program=program,
            args=args,
            additional_execution=spec.additional_execution,
            path=path,
            blocking=spec.blocking,
            json=spec.json,
            immediate=spec.immediate,
            additional_env=additional_env,
            depends_on=list(spec.depends_on),
            description=description,
            exclusive=spec.exclusive,
            terragrunt=self.terragrunt,
            spec=spec,
            after_create=spec.after_create,
            after_queued=spec.after_queued,
            after_running=spec.after_running,
            before_exited=spec.before_exited,
            after_exited=spec.after_exited,
            after_error=spec.after_error,
            after_canceled=spec.after_canceled,
            after_finish=spec.after_finish,
        )
        publisher = self.publisher
        if publisher is not None:
            task._on_update = lambda t: publisher.publish(UPDATED_EVENT, t)
        task._on_finish = self.on_finish
        return task


_ACTIVE_RANK = {Status.RUNNING: 0, Status.QUEUED: 1, Status.PENDING: 2}


def by_state(a: Task, b: Task) -> int:
    """Order tasks: running, then queued, then pending, then finished.

    Running tasks are ordered oldest update first; the rest newest first.
    """
    rank_a = _ACTIVE_RANK.get(a.state, 3)
    rank_b = _ACTIVE_RANK.get(b.state, 3)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1
    if a.state is Status.RUNNING:
        return -1 if a.updated < b.updated else 1
    return 1 if a.updated < b.updated else -1