# pug

Building blocks for running terraform (and other programs) as tasks across
many modules and workspaces: task lifecycle, scheduling, dependency
ordering, task groups, and the key bindings and navigation messages of a
terminal interface. It needs nothing beyond the standard library.

## What it provides

- **Statuses** (`pug.status`): `Status` (pending, queued, running, exited,
  errored, canceled) with `is_final()`, and `StatusTimestamps.elapsed()`.
- **Output** (`pug.buffer`): `OutputBuffer` is a thread-safe byte buffer;
  `new_reader()` returns an independent copy of what was written so far and
  `stream()` yields new bytes as they arrive until `close()` is called.
- **Specs and identifiers** (`pug.spec`): `ResourceKind`, `ResourceID` and
  `new_id()`, plus `Spec`, `Execution` and `Dependencies` describing a task
  to create.
- **Tasks** (`pug.task`): `TaskFactory.new_task()` builds a pending `Task`
  from a `Spec`. A task runs its program with `subprocess`, captures stdout
  and combined stdout/stderr, moves through the statuses via
  `update_state()` and calls the spec's callbacks on each transition.
  `start()` starts a queued task and returns a function that waits for it;
  `cancel()` cancels a pending or queued task or interrupts a running one;
  `wait()` blocks until it finishes and raises `TaskError` if it failed.
  `by_state()` is a comparison function ordering tasks for display.
- **Service** (`pug.service`): `TaskService` stores tasks and groups and
  publishes created, updated and deleted events through a `Broker`. It
  offers `create`, `create_group`, `add_group`, `enqueue`, `list` (filtered
  and ordered by `ListOptions`), `list_groups`, `get`, `get_group`,
  `cancel`, `delete` and `counter`. Unknown IDs raise `NotFoundError`.
- **Scheduling** (`pug.enqueuer`, `pug.runner`): `Enqueuer.enqueuable()`
  picks pending tasks that may be queued, honouring immediate tasks,
  blocking tasks per module and workspace, and task dependencies (a task
  whose dependency failed is canceled). `Runner.runnable()` limits the number
  of running tasks, exempts immediate tasks, and allows at most one exclusive
  task at once. `start_enqueuer()` and `start_runner()` drive them in
  background threads from the service's task events.
- **Dependencies and groups** (`pug.dependency_graph`, `pug.group`):
  `create_dependent_tasks()` creates tasks so that each depends on the tasks
  of its module's dependencies, or the reverse order for destroys.
  `new_group()` builds a `Group`, whose `finished()`, `exited()` and
  `errored()` count its tasks; `sort_groups_by_created()` orders groups
  newest first.
- **Interface helpers**: `pug.ago.ago()` renders relative times such as
  `"50s ago"`; `pug.keys` holds `KeyBinding` and the key maps `COMMON`,
  `FILTER`, `GLOBAL`, `NAVIGATION`, `EXPLORER_KEYS` and `LOG_KEYS`, with
  `key_map_to_list()`; `pug.navigation` holds `Kind`, `Page`,
  `NavigationMsg`, `new_navigation_msg()` with its `with_parent()`,
  `with_position()` and `disable_focus()` options, and `PageCache`.

## What it does not do

There is no terminal interface here: nothing draws screens, panes, borders
or tables, and there is no module/workspace explorer tree or log viewer.
There is no command to run, and nothing discovers terraform modules or
workspaces on disk or stores tasks beyond the memory of a `TaskService`.
The `pug.explorer` sub-package is empty.

## Installing

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Example

    from pug.enqueuer import start_enqueuer
    from pug.runner import start_runner
    from pug.service import TaskService
    from pug.spec import Execution, Spec

    service = TaskService(program="terraform")
    start_enqueuer(service)
    wait_all = start_runner(service, max_tasks=4)

    task = service.create(Spec(execution=Execution(program="echo", args=["hello"])))
    task.wait(timeout=10)
    print(task.state, task.new_reader().read())