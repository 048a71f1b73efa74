import pytest

from pug.navigation import (
    Kind,
    NavigationMsg,
    Page,
    PageCache,
    disable_focus,
    new_navigation_msg,
    with_parent,
    with_position,
)
from pug.spec import ResourceKind, new_id


class FakeModel:
    def __init__(self, name):
        self.name = name
        self.received = []

    def update(self, msg):
        self.received.append(msg)
        return (self.name, msg)


def test_kind_order_follows_source():
    msg = new_navigation_msg(Kind(0))
    assert msg.page.kind is Kind.TASK_LIST
    assert list(Kind)[-1] is Kind.EXPLORER
    assert str(msg.page.kind) == "TaskListKind"


def test_new_navigation_msg_defaults():
    msg = new_navigation_msg(Kind.EXPLORER)
    assert msg == NavigationMsg(page=Page(kind=Kind.EXPLORER))
    assert msg.page.id is None
    assert msg.disable_focus is False


def test_navigation_options_applied():
    task_id = new_id(ResourceKind.TASK)
    msg = new_navigation_msg(
        Kind.TASK, with_parent(task_id), with_position("bottom"), disable_focus()
    )
    assert msg.page == Page(kind=Kind.TASK, id=task_id)
    assert msg.position == "bottom"
    assert msg.disable_focus is True


def test_pages_are_hashable_keys():
    task_id = new_id(ResourceKind.TASK)
    assert {Page(Kind.TASK, task_id): 1}[Page(Kind.TASK, task_id)] == 1


def test_cache_put_and_get():
    cache = PageCache()
    page = Page(Kind.LOG_LIST)
    model = FakeModel("logs")
    cache.put(page, model)
    assert cache.get(page) is model
    assert cache.get(Page(Kind.TASK_LIST)) is None


def test_cache_update_sends_to_one_model():
    cache = PageCache()
    a, b = FakeModel("a"), FakeModel("b")
    cache.put(Page(Kind.TASK_LIST), a)
    cache.put(Page(Kind.LOG_LIST), b)
    assert cache.update(Page(Kind.TASK_LIST), "msg") == ("a", "msg")
    assert a.received == ["msg"]
    assert b.received == []


def test_cache_update_missing_page():
    with pytest.raises(KeyError):
        PageCache().update(Page(Kind.TASK), "msg")


def test_cache_update_all():
    cache = PageCache()
    a, b = FakeModel("a"), FakeModel("b")
    cache.put(Page(Kind.TASK_LIST), a)
    cache.put(Page(Kind.LOG_LIST), b)
    cmds = cache.update_all("resize")
    assert sorted(cmds) == [("a", "resize"), ("b", "resize")]
    assert a.received == ["resize"] and b.received == ["resize"]