"""Single source of truth for the task collection shared by all views."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from .errors import PersistenceError, TaskNotFound
from .models import Category, Task
from .ordering import filter_by_category, order_tasks
from .projection import CalendarEvent, project_events
from .storage import TaskRepository, task_to_payload
from .transactions import AddTask, DeleteTask, Operation, Tasks, apply, duplicate_ids, new_task_id, target_id


logger = logging.getLogger(__name__)


class TaskStore(QObject):
    """Owns the current task tuple and syncs each change to a repository.

    Views read :attr:`tasks` (or the ordered/projected helpers) and send
    every edit through :meth:`dispatch`. Changes are applied in memory
    first and `tasks_changed` fires before the repository is called, so
    rendering never waits on storage. When the repository fails, the one
    task touched by the operation is rolled back and `sync_failed` fires.
    """

    tasks_changed = pyqtSignal(tuple)
    sync_failed = pyqtSignal(str)

    def __init__(
        self,
        repository: TaskRepository,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = new_task_id,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.repository = repository
        self._clock = clock
        self._id_factory = id_factory
        self._tasks: Tasks = ()

    @property
    def tasks(self) -> Tasks:
        return self._tasks

    def get(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def ordered(self, category: Optional[Category] = None) -> List[Task]:
        """Sidebar view: optional category filter, then display order."""
        return order_tasks(filter_by_category(self._tasks, category))

    def events(self) -> List[CalendarEvent]:
        return project_events(self._tasks)

    def now(self) -> datetime:
        return self._clock()

    def load(self) -> Tasks:
        """Replace the collection with the repository contents."""
        try:
            records = self.repository.list()
        except PersistenceError as exc:
            logger.error("Loading tasks failed: %s", exc)
            self.sync_failed.emit(str(exc))
            raise
        duplicates = duplicate_ids(records)
        if duplicates:
            logger.warning("Dropping later copies of duplicated ids: %s", ", ".join(duplicates))
            records = _first_occurrences(records)
        self._publish(tuple(records))
        logger.info("Loaded %d tasks", len(self._tasks))
        return self._tasks

    def dispatch(self, operation: Operation) -> Tasks:
        """Apply ``operation`` in memory, then mirror it to the repository."""
        previous = self._tasks
        updated = apply(previous, operation, now=self._clock(), id_factory=self._id_factory)
        if updated is previous:
            return previous
        self._publish(updated)

        try:
            self._sync(operation, updated)
        except PersistenceError as exc:
            logger.warning("Sync of %s failed, rolling back: %s", type(operation).__name__, exc)
            self._rollback(operation, previous, updated)
            self.sync_failed.emit(str(exc))
            raise
        return self._tasks

    def _publish(self, tasks: Tasks) -> None:
        self._tasks = tasks
        self.tasks_changed.emit(tasks)

    def _sync(self, operation: Operation, updated: Tasks) -> None:
        if isinstance(operation, AddTask):
            local = updated[-1]
            stored = self.repository.create(task_to_payload(local))
            if stored != local:
                self._replace(local.id, stored)
            return

        task_id = target_id(operation)
        try:
            if isinstance(operation, DeleteTask):
                self.repository.delete(task_id)
                return
            task = _find(updated, task_id)
            self.repository.update(task_id, task_to_payload(task))
        except TaskNotFound:
            # Stale on the storage side; the in-memory value stays authoritative.
            logger.info("Task %s is unknown to the repository, keeping local value", task_id)

    def _rollback(self, operation: Operation, previous: Tasks, updated: Tasks) -> None:
        if isinstance(operation, AddTask):
            local_id = updated[-1].id
            self._publish(tuple(task for task in self._tasks if task.id != local_id))
            return
        task_id = target_id(operation)
        original = _find(previous, task_id)
        if isinstance(operation, DeleteTask):
            index = [task.id for task in previous].index(task_id)
            restored = self._tasks[:index] + (original,) + self._tasks[index:]
            self._publish(restored)
            return
        self._replace(task_id, original)

    def _replace(self, task_id: str, task: Task) -> None:
        self._publish(tuple(task if current.id == task_id else current for current in self._tasks))


def _find(tasks: Tuple[Task, ...], task_id: str) -> Task:
    for task in tasks:
        if task.id == task_id:
            return task
    raise KeyError(task_id)


def _first_occurrences(records: List[Task]) -> List[Task]:
    seen = set()
    unique: List[Task] = []
    for task in records:
        if task.id not in seen:
            seen.add(task.id)
            unique.append(task)
    return unique
