"""Persistence collaborators: an in-memory store and CSV file storage."""
from __future__ import annotations

import csv
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from .errors import PersistenceError, TaskNotFound
from .models import Category, Task
from .normalize import normalize


logger = logging.getLogger(__name__)

_FORMAT_PREFIX = "#caltask"
_FORMAT_VERSION = 1
_TASK_HEADER = [
    "id",
    "title",
    "description",
    "category",
    "color",
    "due_date",
    "is_all_day",
    "duration",
    "is_priority",
]
PAYLOAD_FIELDS = tuple(_TASK_HEADER[1:])

Payload = Dict[str, Any]


class TaskRepository(Protocol):
    """Storage collaborator keyed by task identifier."""

    def list(self) -> List[Task]:
        ...

    def create(self, payload: Mapping[str, Any]) -> Task:
        ...

    def update(self, task_id: str, payload: Mapping[str, Any]) -> Task:
        ...

    def delete(self, task_id: str) -> None:
        ...


def task_to_payload(task: Task) -> Payload:
    """All task fields except the identifier."""
    return {
        "title": task.title,
        "description": task.description,
        "category": task.category.value,
        "color": task.color,
        "due_date": task.due_date,
        "is_all_day": task.is_all_day,
        "duration": task.duration,
        "is_priority": task.is_priority,
    }


def task_from_payload(task_id: str, payload: Mapping[str, Any], base: Optional[Task] = None) -> Task:
    """Build a task from a full payload, or merge a partial one into ``base``."""
    unknown = set(payload) - set(PAYLOAD_FIELDS)
    if unknown:
        raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")
    task = base if base is not None else Task(id=task_id, title="")
    values: Dict[str, Any] = {}
    if "title" in payload:
        values["title"] = str(payload["title"] or "")
    if "description" in payload:
        values["description"] = str(payload["description"] or "")
    if "category" in payload:
        values["category"] = Category.parse(payload["category"] or Category.PERSONAL)
    if "color" in payload:
        values["color"] = str(payload["color"] or "")
    if "due_date" in payload:
        values["due_date"] = _coerce_datetime(payload["due_date"])
    if "is_all_day" in payload:
        values["is_all_day"] = bool(payload["is_all_day"])
    if "duration" in payload:
        raw = payload["duration"]
        values["duration"] = None if raw in (None, "") else float(raw)
    if "is_priority" in payload:
        values["is_priority"] = bool(payload["is_priority"])
    return normalize(replace(task, id=task_id, **values))


class InMemoryTaskRepository:
    """Dictionary-backed repository, mostly for tests and demos."""

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._records: Dict[str, Task] = {task.id: task for task in tasks}

    def list(self) -> List[Task]:
        return list(self._records.values())

    def create(self, payload: Mapping[str, Any]) -> Task:
        task = task_from_payload(str(uuid.uuid4()), payload)
        self._records[task.id] = task
        return task

    def update(self, task_id: str, payload: Mapping[str, Any]) -> Task:
        current = self._records.get(task_id)
        if current is None:
            raise TaskNotFound(task_id)
        task = task_from_payload(task_id, payload, base=current)
        self._records[task_id] = task
        return task

    def delete(self, task_id: str) -> None:
        if task_id not in self._records:
            raise TaskNotFound(task_id)
        del self._records[task_id]


class CsvTaskRepository:
    """Repository that rewrites a single CSV file on every change."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def list(self) -> List[Task]:
        if not self.path.exists():
            return []
        try:
            return load_tasks(self.path)
        except (OSError, ValueError, OverflowError) as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc

    def create(self, payload: Mapping[str, Any]) -> Task:
        tasks = self.list()
        try:
            task = task_from_payload(str(uuid.uuid4()), payload)
        except (ValueError, OverflowError) as exc:
            raise PersistenceError(str(exc)) from exc
        tasks.append(task)
        self._write(tasks)
        return task

    def update(self, task_id: str, payload: Mapping[str, Any]) -> Task:
        tasks = self.list()
        for index, current in enumerate(tasks):
            if current.id == task_id:
                try:
                    task = task_from_payload(task_id, payload, base=current)
                except (ValueError, OverflowError) as exc:
                    raise PersistenceError(str(exc)) from exc
                tasks[index] = task
                self._write(tasks)
                return task
        raise TaskNotFound(task_id)

    def delete(self, task_id: str) -> None:
        tasks = self.list()
        remaining = [task for task in tasks if task.id != task_id]
        if len(remaining) == len(tasks):
            raise TaskNotFound(task_id)
        self._write(remaining)

    def _write(self, tasks: List[Task]) -> None:
        try:
            save_tasks(self.path, tasks)
        except OSError as exc:
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc


def save_tasks(path: Path | str, tasks: Iterable[Task]) -> None:
    """Persist the task collection to CSV."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow([_FORMAT_PREFIX, _FORMAT_VERSION])
        writer.writerow(_TASK_HEADER)
        for task in tasks:
            writer.writerow([
                task.id,
                task.title,
                task.description,
                task.category.value,
                task.color,
                _serialize_optional_datetime(task.due_date),
                int(task.is_all_day),
                _serialize_optional_float(task.duration),
                int(task.is_priority),
            ])


def load_tasks(path: Path | str) -> List[Task]:
    """Load the task collection from CSV, repairing inconsistent rows."""
    csv_path = Path(path)
    with csv_path.open("r", newline="", encoding="utf-8") as handle:
        reader = csv.reader(handle)
        format_line = next(reader, None)
        if not format_line or format_line[0] != _FORMAT_PREFIX:
            raise ValueError("Invalid caltask CSV: missing format line")

        header = next(reader, None)
        if header != _TASK_HEADER:
            raise ValueError("Invalid caltask CSV: missing task header")

        tasks: List[Task] = []
        for row in reader:
            if len(row) < len(_TASK_HEADER):
                continue
            task_id, title, description, category, color, due_raw, all_day, duration_raw, priority = row[:9]
            if not task_id or not title.strip():
                logger.warning("Skipping incomplete row in %s", csv_path)
                continue
            try:
                parsed_category = Category.parse(category)
            except ValueError:
                logger.warning("Unknown category %r for task %s, using Personal", category, task_id)
                parsed_category = Category.PERSONAL
            task = Task(
                id=task_id,
                title=title,
                description=description,
                category=parsed_category,
                color=color,
                due_date=_parse_optional_datetime(due_raw),
                is_all_day=_parse_flag(all_day),
                duration=_parse_optional_float(duration_raw),
                is_priority=_parse_flag(priority),
            )
            tasks.append(normalize(task))

        return tasks


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _serialize_optional_datetime(value: Optional[datetime]) -> str:
    return "" if value is None else value.isoformat()


def _serialize_optional_float(value: Optional[float]) -> str:
    return "" if value is None else f"{value:g}"


def _parse_optional_datetime(value: str) -> Optional[datetime]:
    text = value.strip() if value is not None else ""
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _parse_optional_float(value: str) -> Optional[float]:
    text = value.strip() if value is not None else ""
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _parse_flag(value: str) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")
