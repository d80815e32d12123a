"""Rules that keep due date, duration and all-day state consistent.

Every edit to a task goes through :func:`apply_change` with exactly one
field change. The result is always a complete, consistent task value:

* an all-day task never carries a duration,
* an unscheduled task never carries a duration,
* ``color`` always matches ``category``,
* a duration is always a positive multiple of half an hour.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Optional, Union

from .colors import color_for
from .models import DEFAULT_DURATION, DEFAULT_TIME, DURATION_STEP, MAX_DURATION, Category, Task


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateChange:
    date: Optional[date]


@dataclass(frozen=True)
class TimeChange:
    time: Optional[time]


@dataclass(frozen=True)
class AllDayChange:
    enabled: bool


@dataclass(frozen=True)
class DurationChange:
    value: object


@dataclass(frozen=True)
class CategoryChange:
    category: Union[Category, str]


@dataclass(frozen=True)
class TitleChange:
    title: str


@dataclass(frozen=True)
class DescriptionChange:
    description: str


@dataclass(frozen=True)
class PriorityChange:
    enabled: bool


@dataclass(frozen=True)
class SetToday:
    """Move the task to today as an all-day entry."""


FieldChange = Union[
    DateChange,
    TimeChange,
    AllDayChange,
    DurationChange,
    CategoryChange,
    TitleChange,
    DescriptionChange,
    PriorityChange,
    SetToday,
]


def coerce_duration(value: object) -> float:
    """Turn user input into hours on the half-hour grid.

    Anything that is not a representable positive number becomes one
    hour. Values beyond two weeks are capped.
    """
    try:
        hours = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_DURATION
    if not math.isfinite(hours) or hours <= 0:
        return DEFAULT_DURATION
    return snap_hours(hours)


def snap_hours(hours: float) -> float:
    """Round to the nearest half hour, between half an hour and two weeks."""
    if not math.isfinite(hours):
        return DEFAULT_DURATION
    hours = min(hours, MAX_DURATION)
    steps = math.floor(hours / DURATION_STEP + 0.5)
    return max(1, steps) * DURATION_STEP


def midnight(value: datetime) -> datetime:
    return datetime.combine(value.date(), time())


def apply_change(task: Task, change: FieldChange, now: Optional[datetime] = None) -> Task:
    """Return a new task with ``change`` applied and all rules restored."""
    if isinstance(change, DateChange):
        updated = _change_date(task, change.date)
    elif isinstance(change, TimeChange):
        updated = _change_time(task, change.time, now)
    elif isinstance(change, AllDayChange):
        updated = _toggle_all_day(task, change.enabled)
    elif isinstance(change, DurationChange):
        if task.is_all_day or task.due_date is None:
            updated = task
        else:
            updated = replace(task, duration=coerce_duration(change.value))
    elif isinstance(change, CategoryChange):
        category = Category.parse(change.category)
        updated = replace(task, category=category, color=color_for(category))
    elif isinstance(change, TitleChange):
        title = (change.title or "").strip()
        updated = replace(task, title=title) if title else task
    elif isinstance(change, DescriptionChange):
        updated = replace(task, description=change.description or "")
    elif isinstance(change, PriorityChange):
        updated = replace(task, is_priority=bool(change.enabled))
    elif isinstance(change, SetToday):
        today = now or datetime.now()
        updated = replace(task, due_date=midnight(today), is_all_day=True, duration=None)
    else:
        raise TypeError(f"Unsupported field change: {change!r}")
    return normalize(updated)


def normalize(task: Task) -> Task:
    """Repair ``task`` so that every consistency rule holds."""
    category = Category.parse(task.category)
    due_date = task.due_date
    duration = task.duration
    if task.is_all_day:
        duration = None
        if due_date is not None:
            due_date = midnight(due_date)
    if due_date is None:
        duration = None
    if duration is not None:
        duration = coerce_duration(duration)
    candidate = replace(
        task,
        category=category,
        color=color_for(category),
        due_date=due_date,
        duration=duration,
    )
    if candidate != task:
        logger.debug("Normalized task %s", task.id)
    return candidate


def _change_date(task: Task, new_date: Optional[date]) -> Task:
    if new_date is None:
        return replace(task, due_date=None, duration=None)
    if isinstance(new_date, datetime):
        new_date = new_date.date()
    if task.is_all_day:
        clock = time()
    elif task.due_date is not None:
        clock = task.due_date.time()
    else:
        clock = DEFAULT_TIME
    return replace(task, due_date=datetime.combine(new_date, clock))


def _change_time(task: Task, new_time: Optional[time], now: Optional[datetime]) -> Task:
    if task.is_all_day:
        return task
    if new_time is None:
        return replace(task, due_date=None, duration=None)
    day = task.due_date.date() if task.due_date is not None else (now or datetime.now()).date()
    return replace(task, due_date=datetime.combine(day, new_time))


def _toggle_all_day(task: Task, enabled: bool) -> Task:
    if enabled:
        return replace(task, is_all_day=True, duration=None)
    if not task.is_all_day:
        return task
    due_date = task.due_date
    duration = task.duration
    if due_date is not None:
        if due_date.time() == time():
            due_date = datetime.combine(due_date.date(), DEFAULT_TIME)
        if duration is None:
            duration = DEFAULT_DURATION
    return replace(task, is_all_day=False, due_date=due_date, duration=duration)
