from datetime import datetime, timedelta

import pytest

from pug.status import MAX_STATUS_LEN, Status, StatusTimestamps


@pytest.mark.parametrize(
    "status,final",
    [
        (Status.PENDING, False),
        (Status.QUEUED, False),
        (Status.RUNNING, False),
        (Status.EXITED, True),
        (Status.ERRORED, True),
        (Status.CANCELED, True),
    ],
)
def test_is_final(status, final):
    assert status.is_final() is final


def test_status_values_round_trip():
    for status in Status:
        assert Status(status.value) is status
        assert str(status) == status.value


def test_max_status_len_matches_longest_status():
    assert len(str(Status("canceled"))) == MAX_STATUS_LEN
    assert all(len(str(Status(s.value))) <= MAX_STATUS_LEN for s in Status)


def test_elapsed_without_start_is_zero():
    assert StatusTimestamps().elapsed() == timedelta(0)


def test_elapsed_with_end():
    start = datetime(2024, 1, 1, 12, 0, 0)
    ts = StatusTimestamps(started=start, ended=start + timedelta(seconds=5))
    assert ts.elapsed() == timedelta(seconds=5)


def test_elapsed_ongoing_grows():
    ts = StatusTimestamps(started=datetime.now() - timedelta(seconds=2))
    assert ts.elapsed() >= timedelta(seconds=2)