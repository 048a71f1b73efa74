"""Pages, navigation messages and the cache of page models."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Protocol

from pug.spec import ResourceID


class Kind(IntEnum):
    """The kind of model making up a page."""

    TASK_LIST = 0
    TASK = 1
    TASK_GROUP_LIST = 2
    TASK_GROUP = 3
    RESOURCE_LIST = 4
    RESOURCE = 5
    LOG_LIST = 6
    LOG = 7
    EXPLORER = 8

    def __str__(self) -> str:
        words = self.name.split("_")
        return "".join(word.capitalize() for word in words) + "Kind"


@dataclass(frozen=True)
class Page:
    """Identifies an instance of a model: its kind and resource."""

    kind: Kind
    id: ResourceID | None = None


@dataclass
class NavigationMsg:
    """An instruction to navigate to a page."""

    page: Page
    position: Any = None
    disable_focus: bool = False


NavigateOption = Callable[[NavigationMsg], None]


def new_navigation_msg(kind: Kind, *opts: NavigateOption) -> NavigationMsg:
    """Build a navigation message for the given kind, applying options."""
    msg = NavigationMsg(page=Page(kind=kind))
    for opt in opts:
        opt(msg)
    return msg


def with_parent(parent: ResourceID) -> NavigateOption:
    """Navigate to the page for the given resource."""

    def apply(msg: NavigationMsg) -> None:
        msg.page = Page(kind=msg.page.kind, id=parent)

    return apply


def with_position(position: Any) -> NavigateOption:
    """Navigate to the page in the given pane position."""

    def apply(msg: NavigationMsg) -> None:
        msg.position = position

    return apply


def disable_focus() -> NavigateOption:
    """Navigate without moving focus to the page."""

    def apply(msg: NavigationMsg) -> None:
        msg.disable_focus = True

    return apply


class _ChildModel(Protocol):
    def update(self, msg: Any) -> Any: ...


@dataclass
class PageCache:
    """Remembers page models so that user state survives navigation."""

    _cache: dict[Page, Any] = field(default_factory=dict)

    def get(self, page: Page) -> Any:
        """Return the cached model, or None if there is none."""
        return self._cache.get(page)

    def put(self, page: Page, model: _ChildModel) -> None:
        self._cache[page] = model

    def update(self, page: Page, msg: Any) -> Any:
        """Send a message to a cached model; KeyError if not cached."""
        return self._cache[page].update(msg)

    def update_all(self, msg: Any) -> list[Any]:
        """Send a message to every cached model, returning their commands."""
        return [model.update(msg) for model in self._cache.values()]