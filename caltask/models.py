"""Data models shared across the Caltask application."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from typing import List, Optional


DEFAULT_TIME = time(9, 0)
DEFAULT_DURATION = 1.0
DURATION_STEP = 0.5
MAX_DURATION = 24.0 * 14


class Category(str, Enum):
    """Closed set of task categories; values are the persisted strings."""

    PERSONAL = "Personal"
    UNI = "Uni"
    WORK = "Work"
    BACKLOG = "Backlog"

    @classmethod
    def parse(cls, value: "Category | str") -> "Category":
        """Accept a member, its value or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"Unknown category: {value!r}")


@dataclass(frozen=True)
class Task:
    """Immutable value of a single task; edits produce a new instance."""

    id: str
    title: str
    description: str = ""
    category: Category = Category.PERSONAL
    color: str = ""
    due_date: Optional[datetime] = None
    is_all_day: bool = False
    duration: Optional[float] = None
    is_priority: bool = False

    def __post_init__(self) -> None:
        if not self.color:
            from .colors import color_for  # local import to avoid cycle

            object.__setattr__(self, "color", color_for(self.category))

    def is_scheduled(self) -> bool:
        """Return True when the task carries a due date."""
        return self.due_date is not None

    def end(self) -> Optional[datetime]:
        """Return the end instant of a timed task with a duration."""
        if self.due_date is None or self.is_all_day or self.duration is None:
            return None
        try:
            return self.due_date + timedelta(hours=self.duration)
        except OverflowError:
            return datetime.max

    def check_invariants(self) -> List[str]:
        """List every consistency rule this value breaks (empty when valid)."""
        from .colors import color_for  # local import to avoid cycle

        problems: List[str] = []
        if self.is_all_day and self.duration is not None:
            problems.append("all-day task carries a duration")
        if self.due_date is None and self.duration is not None:
            problems.append("unscheduled task carries a duration")
        if self.color != color_for(self.category):
            problems.append("color does not match category")
        if self.duration is not None:
            steps = self.duration / DURATION_STEP
            if not math.isfinite(steps) or self.duration <= 0 or steps != int(steps):
                problems.append("duration is not a positive multiple of 0.5h")
            elif self.duration > MAX_DURATION:
                problems.append("duration exceeds the two week maximum")
        return problems


@dataclass
class TaskDraft:
    """Values typed into the quick-add form before a task exists."""

    title: str = ""
    description: str = ""
    category: Category = Category.PERSONAL
    due_date: Optional[datetime] = None
    is_all_day: bool = False
    duration: Optional[float] = None
    is_priority: bool = False

    def has_title(self) -> bool:
        return bool(self.title and self.title.strip())
