"""Thread-safe in-memory storage for tasks."""

from __future__ import annotations

import dataclasses
import threading
import uuid
from datetime import datetime, timezone

from .models import Task, TaskStatus


class RepositoryError(Exception):
    """Base error for repository operations."""


class TaskNotFoundError(RepositoryError):
    """No task is stored under the requested id."""


class TaskExistsError(RepositoryError):
    """A task with the same id is already stored."""


class InMemoryTaskRepository:
    """Stores independent copies of tasks keyed by their id."""

    def __init__(self) -> None:
        self._store: dict[uuid.UUID, Task] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _copy(task: Task) -> Task:
        return dataclasses.replace(task)

    def create(self, task: Task | None) -> None:
        """Store a new task, stamping its creation time."""
        if task is None:
            raise RepositoryError("task cannot be None")
        with self._lock:
            if task.id in self._store:
                raise TaskExistsError(f"task with ID {task.id} already exists")
            task.created_at = datetime.now(timezone.utc)
            self._store[task.id] = self._copy(task)

    def get_by_id(self, task_id: uuid.UUID) -> Task:
        with self._lock:
            try:
                stored = self._store[task_id]
            except KeyError:
                raise TaskNotFoundError(f"task with ID {task_id} not found") from None
            return self._copy(stored)

    def update(self, task: Task | None) -> None:
        if task is None:
            raise RepositoryError("task cannot be None")
        with self._lock:
            if task.id not in self._store:
                raise TaskNotFoundError(f"task with ID {task.id} not found")
            self._store[task.id] = self._copy(task)

    def delete(self, task_id: uuid.UUID) -> None:
        with self._lock:
            if self._store.pop(task_id, None) is None:
                raise TaskNotFoundError(f"task with ID {task_id} not found")

    def get_all(self) -> list[Task]:
        with self._lock:
            return [self._copy(task) for task in self._store.values()]

    def task_count(self) -> int:
        with self._lock:
            return len(self._store)

    def get_tasks_by_status(self, status: TaskStatus) -> list[Task]:
        with self._lock:
            return [self._copy(t) for t in self._store.values() if t.status == status]

    def clear(self) -> None:
        with self._lock:
            self._store.clear()