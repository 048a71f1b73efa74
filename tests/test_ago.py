from datetime import datetime, timedelta

from pug.ago import ago


def test_ago_rounds_seconds_to_ten_second_blocks():
    now = datetime.now()
    assert ago(now, now - timedelta(seconds=47)) == "50s ago"


def test_ago_hours():
    now = datetime.now()
    assert ago(now, now - timedelta(hours=47)) == "47h ago"


def test_ago_under_ten_seconds_is_exact():
    now = datetime(2024, 1, 1, 12, 0, 0)
    assert ago(now, now - timedelta(seconds=5, milliseconds=900)) == "5s ago"


def test_ago_minutes_truncated():
    now = datetime(2024, 1, 1, 12, 0, 0)
    assert ago(now, now - timedelta(minutes=30, seconds=59)) == "30m ago"


def test_ago_zero():
    now = datetime(2024, 1, 1, 12, 0, 0)
    assert ago(now, now) == "0s ago"