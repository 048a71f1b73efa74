"""Task lifecycle statuses and the timestamps recorded for each."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class Status(str, Enum):
    """A stage in the lifecycle of a task."""

    PENDING = "pending"
    QUEUED = "queued"
    RUNNING = "running"
    EXITED = "exited"
    ERRORED = "errored"
    CANCELED = "canceled"

    def is_final(self) -> bool:
        """Return True if the status is a terminal one."""
        return self in (Status.EXITED, Status.ERRORED, Status.CANCELED)

    def __str__(self) -> str:
        return self.value


MAX_STATUS_LEN = len(Status.CANCELED.value)


@dataclass
class StatusTimestamps:
    """When a task entered and left a status."""

    started: datetime | None = None
    ended: datetime | None = None

    def elapsed(self) -> timedelta:
        """Time spent in the status, up to now if it has not ended."""
        if self.started is None:
            return timedelta(0)
        if self.ended is None:
            return datetime.now() - self.started
        return self.ended - self.started