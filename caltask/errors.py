"""Exceptions raised at the persistence boundary."""
from __future__ import annotations


class CaltaskError(Exception):
    """Base class for errors surfaced to callers."""


class PersistenceError(CaltaskError):
    """A storage collaborator failed to complete an operation."""


class TaskNotFound(PersistenceError):
    """The storage collaborator does not know the requested task."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id
