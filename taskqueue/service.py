"""Task service that runs each task in a background worker thread."""

from __future__ import annotations

import dataclasses
import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from .models import Task, TaskStatus, new_task
from .repository import RepositoryError

log = logging.getLogger(__name__)

DEFAULT_TASK_TIMEOUT = 6 * 60.0
DEFAULT_SHUTDOWN_TIMEOUT = 30.0


def _default_work_duration() -> float:
    return 60.0 * random.randint(3, 5)


class Repository(Protocol):
    def create(self, task: Task) -> None: ...
    def get_by_id(self, task_id: uuid.UUID) -> Task: ...
    def update(self, task: Task) -> None: ...
    def delete(self, task_id: uuid.UUID) -> None: ...
    def get_all(self) -> list[Task]: ...


class ServiceError(Exception):
    """A task service operation failed."""


@dataclass(eq=False)
class TaskContext:
    """Runtime state of a task being executed."""

    id: uuid.UUID
    started: float = field(default_factory=time.monotonic)
    status: TaskStatus = TaskStatus.PROCESSING
    done: threading.Event = field(default_factory=threading.Event, repr=False)
    _cancelled: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def cancel(self) -> None:
        self._cancelled.set()

    def is_finished(self) -> bool:
        return self.done.is_set()

    def current_status(self) -> TaskStatus:
        with self._lock:
            return self.status

    def _mark_finished(self, status: TaskStatus) -> None:
        with self._lock:
            self.status = status
            self.done.set()


class TaskService:
    """Creates tasks and simulates their processing in worker threads."""

    def __init__(
        self,
        repo: Repository,
        *,
        tick: float = 1.0,
        task_timeout: float = DEFAULT_TASK_TIMEOUT,
        work_duration: Callable[[], float] = _default_work_duration,
    ) -> None:
        self._repo = repo
        self._tick = tick
        self._task_timeout = task_timeout
        self._work_duration = work_duration
        self._contexts: dict[uuid.UUID, TaskContext] = {}
        self._contexts_lock = threading.Lock()
        self._running = 0
        self._running_cond = threading.Condition()

    def create_task(self, name: str) -> Task:
        task = new_task(name)
        task.status = TaskStatus.PROCESSING
        task.created_at = datetime.now(timezone.utc)
        try:
            self._repo.create(task)
        except RepositoryError as exc:
            raise ServiceError(f"failed to create task: {exc}") from exc

        context = TaskContext(id=task.id)
        with self._contexts_lock:
            self._contexts[task.id] = context
        with self._running_cond:
            self._running += 1

        worker = threading.Thread(
            target=self._execute,
            args=(dataclasses.replace(task), context),
            name=f"task-{task.id}",
            daemon=True,
        )
        worker.start()
        return task

    def get_task(self, task_id: uuid.UUID) -> Task:
        try:
            task = self._repo.get_by_id(task_id)
        except RepositoryError as exc:
            raise ServiceError(f"task not found: {exc}") from exc
        self._update_processing_time(task)
        return task

    def delete_task(self, task_id: uuid.UUID) -> None:
        try:
            self._repo.get_by_id(task_id)
        except RepositoryError as exc:
            raise ServiceError(f"task not found: {exc}") from exc

        with self._contexts_lock:
            context = self._contexts.pop(task_id, None)
        if context is not None:
            context.cancel()

        try:
            self._repo.delete(task_id)
        except RepositoryError as exc:
            raise ServiceError(f"failed to delete task: {exc}") from exc

    def list_tasks(self) -> list[Task]:
        try:
            tasks = self._repo.get_all()
        except RepositoryError as exc:
            raise ServiceError(f"failed to get tasks: {exc}") from exc
        for task in tasks:
            self._update_processing_time(task)
        return tasks

    def shutdown(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> None:
        """Cancel running tasks and wait for their workers to stop."""
        log.info("Shutting down task service...")
        with self._contexts_lock:
            contexts = list(self._contexts.values())
        for context in contexts:
            if not context.is_finished():
                log.info("Cancelling task %s", context.id)
                context.cancel()

        with self._running_cond:
            finished = self._running_cond.wait_for(
                lambda: self._running == 0, timeout=timeout
            )
        if not finished:
            log.warning("Shutdown timeout reached")
            raise ServiceError("shutdown timeout")
        log.info("All tasks finished, service shutdown complete")

    def wait_for_task(self, task_id: uuid.UUID, timeout: float | None = None) -> None:
        """Block until the task finishes; raise TimeoutError if it does not in time."""
        context = self._load_context(task_id)
        if context is None:
            raise ServiceError(f"task {task_id} not found or already finished")
        if not context.done.wait(timeout):
            raise TimeoutError(f"task {task_id} did not finish in time")

    def get_task_status(self, task_id: uuid.UUID) -> TaskStatus | None:
        """Status of a task still being tracked, or None once it is gone."""
        context = self._load_context(task_id)
        if context is None:
            return None
        return context.current_status()

    def _load_context(self, task_id: uuid.UUID) -> TaskContext | None:
        with self._contexts_lock:
            return self._contexts.get(task_id)

    def _update_processing_time(self, task: Task) -> None:
        if not task.is_processing():
            return
        context = self._load_context(task.id)
        if context is not None and not context.is_finished():
            task.processing_time = timedelta(seconds=time.monotonic() - context.started)

    def _execute(self, task: Task, context: TaskContext) -> None:
        try:
            self._run(task, context)
        finally:
            if not context.is_finished():
                context._mark_finished(TaskStatus.FAILED)
            with self._contexts_lock:
                if self._contexts.get(task.id) is context:
                    del self._contexts[task.id]
            with self._running_cond:
                self._running -= 1
                self._running_cond.notify_all()
            log.info(
                "Task %s execution finished with status: %s",
                task.id,
                context.current_status(),
            )

    def _run(self, task: Task, context: TaskContext) -> None:
        log.info("Starting task execution: %s (ID: %s)", task.name, task.id)
        work = self._work_duration()
        log.info("Task %s will take %.1fs to complete", task.id, work)

        start = time.monotonic()
        deadline = context.started + self._task_timeout

        while True:
            cancelled = context._cancelled.wait(self._tick)
            now = time.monotonic()
            elapsed = timedelta(seconds=now - start)
            if cancelled or now >= deadline:
                log.info("Task %s was cancelled", task.id)
                self._finalize(task, TaskStatus.FAILED, elapsed)
                context._mark_finished(TaskStatus.FAILED)
                return

            task.processing_time = elapsed
            if elapsed.total_seconds() >= work:
                log.info("Task %s completed successfully", task.id)
                self._finalize(task, TaskStatus.DONE, elapsed)
                context._mark_finished(TaskStatus.DONE)
                return

            try:
                self._repo.update(task)
            except RepositoryError as exc:
                log.warning("Failed to update task %s during execution: %s", task.id, exc)
                self._finalize(task, TaskStatus.FAILED, elapsed)
                context._mark_finished(TaskStatus.FAILED)
                return

    def _finalize(self, task: Task, status: TaskStatus, processing_time: timedelta) -> None:
        task.status = status
        task.processing_time = processing_time
        try:
            self._repo.update(task)
        except RepositoryError as exc:
            log.warning("Failed to finalize task %s: %s", task.id, exc)