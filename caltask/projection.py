"""Mapping between tasks and calendar events.

Two one-way paths cross the calendar boundary:

* :func:`project_events` turns the task collection into read-only events,
* :func:`apply_drop` / :func:`apply_resize` turn a finished drag or resize
  on the calendar into a new value for the one task it targets.

Drop and resize only ever touch ``due_date``, ``is_all_day`` and
``duration``; title, description, category and priority pass through.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from .colors import color_for
from .models import Category, Task
from .normalize import normalize, snap_hours


@dataclass(frozen=True)
class CalendarEvent:
    id: str
    title: str
    start: datetime
    end: Optional[datetime]
    all_day: bool
    color: str
    category: Category
    is_priority: bool = False
    description: str = ""


@dataclass(frozen=True)
class Interaction:
    """Result of a drag or resize reported by the calendar surface."""

    event_id: str
    start: datetime
    end: Optional[datetime]
    all_day: bool


@dataclass(frozen=True)
class CalendarSettings:
    """Week grid layout: Monday first, 06:00-22:00 in 30 minute slots."""

    first_day: int = 0
    day_start_hour: int = 6
    day_end_hour: int = 22
    slot_minutes: int = 30

    @property
    def slots_per_day(self) -> int:
        return (self.day_end_hour - self.day_start_hour) * 60 // self.slot_minutes

    def week_start(self, day: date) -> date:
        """Return the first day of the week containing ``day``."""
        offset = (day.weekday() - self.first_day) % 7
        return day - timedelta(days=offset)

    def slot_for(self, instant: datetime) -> Optional[int]:
        """Index of the slot holding ``instant``, None outside visible hours."""
        minutes = (instant.hour - self.day_start_hour) * 60 + instant.minute
        if minutes < 0:
            return None
        slot = minutes // self.slot_minutes
        if slot >= self.slots_per_day:
            return None
        return slot

    def slot_start(self, day: date, slot: int) -> datetime:
        """Inverse of :meth:`slot_for` for a given calendar day."""
        base = datetime.combine(day, datetime.min.time())
        return base + timedelta(hours=self.day_start_hour, minutes=slot * self.slot_minutes)

    def month_grid_start(self, day: date) -> date:
        """First cell of the six week grid showing the month of ``day``."""
        return self.week_start(day.replace(day=1))


def to_event(task: Task) -> Optional[CalendarEvent]:
    """Project a single task; unscheduled tasks have no event."""
    if task.due_date is None:
        return None
    return CalendarEvent(
        id=task.id,
        title=task.title,
        start=task.due_date,
        end=task.end(),
        all_day=task.is_all_day,
        color=color_for(task.category),
        category=task.category,
        is_priority=task.is_priority,
        description=task.description,
    )


def project_events(tasks: Iterable[Task]) -> List[CalendarEvent]:
    """One event per scheduled task, in collection order."""
    events: List[CalendarEvent] = []
    for task in tasks:
        event = to_event(task)
        if event is not None:
            events.append(event)
    return events


def apply_drop(task: Task, interaction: Interaction) -> Task:
    """Move ``task`` to the dropped start and all-day state."""
    moved = replace(task, due_date=interaction.start, is_all_day=interaction.all_day)
    return normalize(moved)


def apply_resize(task: Task, interaction: Interaction) -> Task:
    """Take start, all-day state and length from a resized event."""
    duration = task.duration
    if interaction.all_day:
        duration = None
    elif interaction.end is not None:
        hours = (interaction.end - interaction.start).total_seconds() / 3600
        duration = snap_hours(hours)
    resized = replace(
        task,
        due_date=interaction.start,
        is_all_day=interaction.all_day,
        duration=duration,
    )
    return normalize(resized)


def move_to_day(event: CalendarEvent, day: date) -> Interaction:
    """Drop ``event`` on a whole day cell.

    All-day events move to the new date. Timed events keep their time of
    day and length, so only the date changes.
    """
    if event.all_day:
        return Interaction(event.id, datetime.combine(day, time()), None, True)
    start = datetime.combine(day, event.start.time())
    end = start + (event.end - event.start) if event.end is not None else None
    return Interaction(event.id, start, end, False)
