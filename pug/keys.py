"""Key bindings used throughout the terminal interface."""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from typing import Any


@dataclass(frozen=True)
class KeyBinding:
    """Keys that trigger an action, together with their help text."""

    keys: tuple[str, ...]
    help_key: str = ""
    help_desc: str = ""
    enabled: bool = True

    def matches(self, key: Any) -> bool:
        """True if the pressed key is one of this binding's keys."""
        return self.enabled and str(key) in self.keys


def _bind(*keys: str, help: tuple[str, str]) -> KeyBinding:
    return KeyBinding(keys=keys, help_key=help[0], help_desc=help[1])


def key_map_to_list(key_map: Any) -> list[KeyBinding]:
    """Return the bindings of a key map, in field order.

    Anything that is not a key map instance gives an empty list.
    """
    if not is_dataclass(key_map) or isinstance(key_map, type):
        return []
    bindings = []
    for f in fields(key_map):
        value = getattr(key_map, f.name)
        if not isinstance(value, KeyBinding):
            raise TypeError(f"field {f.name!r} is not a key binding")
        bindings.append(value)
    return bindings


@dataclass(frozen=True)
class _Common:
    plan: KeyBinding
    plan_destroy: KeyBinding
    auto_apply: KeyBinding
    destroy: KeyBinding
    cancel: KeyBinding
    delete: KeyBinding
    execute: KeyBinding
    state: KeyBinding
    retry: KeyBinding
    reload: KeyBinding
    edit: KeyBinding
    init: KeyBinding
    init_upgrade: KeyBinding
    validate: KeyBinding
    format: KeyBinding
    cost: KeyBinding


COMMON = _Common(
    plan=_bind("p", help=("p", "plan")),
    plan_destroy=_bind("d", help=("d", "plan destroy")),
    auto_apply=_bind("a", help=("a", "auto-apply")),
    destroy=_bind("D", help=("D", "destroy")),
    cancel=_bind("c", help=("c", "cancel")),
    delete=_bind("delete", help=("delete", "delete")),
    execute=_bind("x", help=("x", "execute program")),
    state=_bind("s", help=("s", "state")),
    retry=_bind("r", help=("r", "retry")),
    reload=_bind("ctrl+r", help=("ctrl+r", "reload")),
    edit=_bind("E", help=("E", "edit")),
    init=_bind("i", help=("i", "init")),
    init_upgrade=_bind("u", help=("u", "init -upgrade")),
    validate=_bind("v", help=("v", "validate")),
    format=_bind("f", help=("f", "format")),
    cost=_bind("$", help=("$", "cost")),
)


@dataclass(frozen=True)
class _Filter:
    blur: KeyBinding
    close: KeyBinding


FILTER = _Filter(
    blur=_bind("enter", help=("enter", "exit filter")),
    close=_bind("esc", help=("esc", "clear filter")),
)


@dataclass(frozen=True)
class _Global:
    explorer: KeyBinding
    tasks: KeyBinding
    task_groups: KeyBinding
    logs: KeyBinding
    select: KeyBinding
    select_all: KeyBinding
    select_clear: KeyBinding
    select_range: KeyBinding
    filter: KeyBinding
    shrink_pane_height: KeyBinding
    grow_pane_height: KeyBinding
    shrink_pane_width: KeyBinding
    grow_pane_width: KeyBinding
    close_pane: KeyBinding
    autoscroll: KeyBinding
    quit: KeyBinding
    suspend: KeyBinding
    help: KeyBinding


GLOBAL = _Global(
    explorer=_bind("e", help=("e", "explorer")),
    tasks=_bind("t", help=("t", "tasks")),
    task_groups=_bind("T", help=("T", "taskgroups")),
    logs=_bind("l", help=("l", "logs")),
    select=_bind(" ", help=("<space>", "select")),
    select_all=_bind("ctrl+a", help=("ctrl+a", "select all")),
    select_clear=_bind("ctrl+\\", help=("ctrl+\\", "clear selection")),
    select_range=_bind("ctrl+@", help=("ctrl+<space>", "select range")),
    filter=_bind("/", help=("/", "filter")),
    shrink_pane_height=_bind("-", help=("-", "reduce height")),
    grow_pane_height=_bind("+", help=("+", "increase height")),
    shrink_pane_width=_bind("<", help=("<", "reduce width")),
    grow_pane_width=_bind(">", help=(">", "increase width")),
    close_pane=_bind("X", help=("X", "close pane")),
    autoscroll=_bind("ctrl+s", help=("ctrl+s", "toggle autoscroll")),
    quit=_bind("ctrl+c", help=("ctrl+c", "exit")),
    suspend=_bind("ctrl+z", help=("ctrl+z", "suspend")),
    help=_bind("?", help=("?", "close help")),
)


@dataclass(frozen=True)
class _Navigation:
    line_up: KeyBinding
    line_down: KeyBinding
    page_up: KeyBinding
    page_down: KeyBinding
    half_page_up: KeyBinding
    half_page_down: KeyBinding
    goto_top: KeyBinding
    goto_bottom: KeyBinding
    switch_pane: KeyBinding
    switch_pane_back: KeyBinding
    left_pane: KeyBinding
    top_right_pane: KeyBinding
    bottom_right_pane: KeyBinding


NAVIGATION = _Navigation(
    line_up=_bind("up", "k", help=("↑/k", "up")),
    line_down=_bind("down", "j", help=("↓/j", "down")),
    page_up=_bind("pgup", help=("pgup", "page up")),
    page_down=_bind("pgdown", help=("pgdn", "page down")),
    half_page_up=_bind("ctrl+u", help=("ctrl+u", "½ page up")),
    half_page_down=_bind("ctrl+d", help=("ctrl+d", "½ page down")),
    goto_top=_bind("home", "g", help=("g/home", "go to start")),
    goto_bottom=_bind("end", "G", help=("G/end", "go to end")),
    switch_pane=_bind("tab", help=("tab", "next pane")),
    switch_pane_back=_bind("shift+tab", help=("shift+tab", "last pane")),
    left_pane=_bind("0", help=("0", "left pane")),
    top_right_pane=_bind("1", help=("1", "top right pane")),
    bottom_right_pane=_bind("2", help=("2", "bottom right pane")),
)


@dataclass(frozen=True)
class _ExplorerKeys:
    enter: KeyBinding
    set_current_workspace: KeyBinding
    reload_modules: KeyBinding
    reload_workspaces: KeyBinding


EXPLORER_KEYS = _ExplorerKeys(
    enter=_bind("enter", help=("enter", "open/close folder")),
    set_current_workspace=_bind("C", help=("C", "set current workspace")),
    reload_modules=_bind("ctrl+r", help=("ctrl+r", "reload modules")),
    reload_workspaces=_bind("ctrl+w", help=("ctrl+w", "reload workspaces")),
)


@dataclass(frozen=True)
class _LogKeys:
    enter: KeyBinding


LOG_KEYS = _LogKeys(enter=_bind("enter", help=("enter", "view message")))