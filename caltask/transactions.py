"""Edit transactions over an immutable task collection.

:func:`apply` is the only way a collection changes. It never mutates the
tuple it is given; it returns a new tuple in which every untouched task
is the very same object as before.
"""
from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple, Union

from .colors import color_for
from .models import Category, Task, TaskDraft
from .normalize import FieldChange, apply_change, normalize
from .projection import Interaction, apply_drop, apply_resize


logger = logging.getLogger(__name__)

Tasks = Tuple[Task, ...]


@dataclass(frozen=True)
class AddTask:
    draft: TaskDraft


@dataclass(frozen=True)
class DeleteTask:
    task_id: str


@dataclass(frozen=True)
class UpdateTask:
    task: Task


@dataclass(frozen=True)
class ChangeField:
    task_id: str
    change: FieldChange


@dataclass(frozen=True)
class DropTask:
    interaction: Interaction


@dataclass(frozen=True)
class ResizeTask:
    interaction: Interaction


Operation = Union[AddTask, DeleteTask, UpdateTask, ChangeField, DropTask, ResizeTask]


def new_task_id() -> str:
    return str(uuid.uuid4())


def target_id(operation: Operation) -> Optional[str]:
    """Identifier an operation addresses (None for additions)."""
    if isinstance(operation, (DeleteTask, ChangeField)):
        return operation.task_id
    if isinstance(operation, UpdateTask):
        return operation.task.id
    if isinstance(operation, (DropTask, ResizeTask)):
        return operation.interaction.event_id
    return None


def create_task(
    draft: TaskDraft,
    task_id: str,
    now: Optional[datetime] = None,
) -> Task:
    """Build a consistent task from the quick-add form values."""
    category = Category.parse(draft.category)
    due_date = draft.due_date if draft.due_date is not None else (now or datetime.now())
    task = Task(
        id=task_id,
        title=draft.title.strip(),
        description=draft.description or "",
        category=category,
        color=color_for(category),
        due_date=due_date,
        is_all_day=draft.is_all_day,
        duration=draft.duration,
        is_priority=draft.is_priority,
    )
    return normalize(task)


def apply(
    tasks: Iterable[Task],
    operation: Operation,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = new_task_id,
) -> Tasks:
    """Return the collection that results from ``operation``."""
    current: Tasks = tuple(tasks)

    if isinstance(operation, AddTask):
        if not operation.draft.has_title():
            logger.debug("Ignoring task without a title")
            return current
        task = create_task(operation.draft, id_factory(), now)
        logger.debug("Added task %s", task.id)
        return current + (task,)

    task_id = target_id(operation)
    if task_id is None:
        raise TypeError(f"Unsupported operation: {operation!r}")
    index = _index_of(current, task_id)
    if index is None:
        logger.debug("Ignoring %s for unknown task %s", type(operation).__name__, task_id)
        return current

    if isinstance(operation, DeleteTask):
        logger.debug("Deleted task %s", task_id)
        return current[:index] + current[index + 1:]

    previous = current[index]
    if isinstance(operation, UpdateTask):
        updated = normalize(operation.task)
    elif isinstance(operation, ChangeField):
        updated = apply_change(previous, operation.change, now)
    elif isinstance(operation, DropTask):
        updated = apply_drop(previous, operation.interaction)
    else:
        updated = apply_resize(previous, operation.interaction)

    if updated == previous:
        return current
    logger.debug("Updated task %s via %s", task_id, type(operation).__name__)
    return current[:index] + (updated,) + current[index + 1:]


def duplicate_ids(tasks: Iterable[Task]) -> List[str]:
    """Identifiers that appear more than once in ``tasks``."""
    counts = Counter(task.id for task in tasks)
    return sorted(task_id for task_id, count in counts.items() if count > 1)


def _index_of(tasks: Tasks, task_id: str) -> Optional[int]:
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return index
    return None
