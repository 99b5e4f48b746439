"""Task model and status values."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class TaskStatus(str, Enum):
    """Lifecycle state of a task."""

    DONE = "DONE"
    PROCESSING = "PROCESSING"
    FAILED = "FAILED"

    def __str__(self) -> str:
        return self.value


@dataclass
class Task:
    """A unit of background work tracked by the service."""

    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    status: TaskStatus | None = None
    created_at: datetime | None = None
    processing_time: timedelta = field(default_factory=timedelta)

    def is_done(self) -> bool:
        return self.status is TaskStatus.DONE

    def is_failed(self) -> bool:
        return self.status is TaskStatus.FAILED

    def is_processing(self) -> bool:
        return self.status is TaskStatus.PROCESSING


def new_task(name: str = "") -> Task:
    """Return a fresh task with a random id and the given name."""
    return Task(name=name)