from datetime import date, datetime, timedelta

from caltask.colors import color_for
from caltask.models import MAX_DURATION, Category, Task
from caltask.normalize import DurationChange, apply_change
from caltask.projection import (
    CalendarSettings,
    Interaction,
    apply_drop,
    apply_resize,
    move_to_day,
    project_events,
)


def test_only_scheduled_tasks_become_events(make_task) -> None:
    tasks = [
        make_task("1", "Dated", due_date=datetime(2024, 3, 1, 9, 0)),
        make_task("2", "Undated"),
        make_task("3", "All day", due_date=datetime(2024, 3, 2), is_all_day=True),
    ]

    events = project_events(tasks)

    assert [event.id for event in events] == ["1", "3"]


def test_timed_event_window_follows_duration(make_task) -> None:
    task = make_task(due_date=datetime(2024, 3, 1, 9, 0), duration=1.5, category=Category.UNI, is_priority=True)

    (event,) = project_events([task])

    assert event.start == datetime(2024, 3, 1, 9, 0)
    assert event.end == datetime(2024, 3, 1, 10, 30)
    assert event.all_day is False
    assert event.color == color_for(Category.UNI)
    assert event.category is Category.UNI
    assert event.is_priority is True


def test_timed_event_without_duration_has_no_end(make_task) -> None:
    (event,) = project_events([make_task(due_date=datetime(2024, 3, 1, 9, 0))])

    assert event.end is None


def test_all_day_event_has_no_end(make_task) -> None:
    (event,) = project_events([make_task(due_date=datetime(2024, 3, 1), is_all_day=True)])

    assert event.all_day is True
    assert event.end is None


def test_drop_moves_start_and_all_day_only(make_task) -> None:
    task = make_task(
        title="Keep",
        description="notes",
        category=Category.WORK,
        due_date=datetime(2024, 3, 1, 9, 0),
        duration=2.0,
        is_priority=True,
    )
    moved = apply_drop(task, Interaction(task.id, datetime(2024, 3, 4, 13, 0), datetime(2024, 3, 4, 15, 0), False))

    assert moved.due_date == datetime(2024, 3, 4, 13, 0)
    assert moved.duration == 2.0
    assert (moved.title, moved.description, moved.category, moved.is_priority) == (
        "Keep",
        "notes",
        Category.WORK,
        True,
    )


def test_drop_into_all_day_row_clears_duration(make_task) -> None:
    task = make_task(due_date=datetime(2024, 3, 1, 9, 0), duration=2.0)

    moved = apply_drop(task, Interaction(task.id, datetime(2024, 3, 2), None, True))

    assert moved.is_all_day
    assert moved.duration is None
    assert moved.check_invariants() == []


def test_resize_recomputes_duration(make_task) -> None:
    task = make_task(due_date=datetime(2024, 3, 1, 9, 0), duration=2.0)

    resized = apply_resize(task, Interaction(task.id, datetime(2024, 3, 1, 9, 0), datetime(2024, 3, 1, 12, 0), False))

    assert resized.duration == 3.0
    assert resized.due_date == datetime(2024, 3, 1, 9, 0)


def test_resize_rounds_to_half_hours(make_task) -> None:
    task = make_task(due_date=datetime(2024, 3, 1, 9, 0), duration=1.0)
    start = datetime(2024, 3, 1, 9, 0)

    assert apply_resize(task, Interaction(task.id, start, start + timedelta(minutes=100), False)).duration == 1.5
    assert apply_resize(task, Interaction(task.id, start, start + timedelta(minutes=5), False)).duration == 0.5


def test_resize_without_end_keeps_duration(make_task) -> None:
    task = make_task(due_date=datetime(2024, 3, 1, 9, 0), duration=2.0)

    resized = apply_resize(task, Interaction(task.id, datetime(2024, 3, 1, 10, 0), None, False))

    assert resized.duration == 2.0
    assert resized.due_date == datetime(2024, 3, 1, 10, 0)


def test_calendar_settings_grid() -> None:
    settings = CalendarSettings()

    assert settings.slots_per_day == 32
    assert settings.week_start(date(2024, 3, 1)) == date(2024, 2, 26)
    assert settings.slot_for(datetime(2024, 3, 1, 9, 0)) == 6
    assert settings.slot_for(datetime(2024, 3, 1, 5, 59)) is None
    assert settings.slot_for(datetime(2024, 3, 1, 22, 0)) is None
    assert settings.slot_start(date(2024, 3, 1), 6) == datetime(2024, 3, 1, 9, 0)


def test_calendar_settings_custom_first_day() -> None:
    settings = CalendarSettings(first_day=6)

    assert settings.week_start(date(2024, 3, 1)) == date(2024, 2, 25)


def test_huge_durations_still_project(make_task) -> None:
    task = apply_change(make_task(due_date=datetime(2024, 3, 1, 9, 0), duration=1.0), DurationChange(1e8))

    (event,) = project_events([task])

    assert event.end == datetime(2024, 3, 1, 9, 0) + timedelta(hours=MAX_DURATION)


def test_end_near_the_calendar_limit_does_not_overflow() -> None:
    task = Task(id="x", title="Late", due_date=datetime(9999, 12, 31, 12, 0), duration=MAX_DURATION)

    (event,) = project_events([task])

    assert event.end == datetime.max


def test_move_to_day_keeps_time_of_timed_events(make_task) -> None:
    (event,) = project_events([make_task("1", due_date=datetime(2024, 3, 1, 14, 30), duration=1.5)])

    interaction = move_to_day(event, date(2024, 3, 20))

    assert interaction == Interaction("1", datetime(2024, 3, 20, 14, 30), datetime(2024, 3, 20, 16, 0), False)


def test_move_to_day_keeps_all_day_events_all_day(make_task) -> None:
    task = make_task("1", due_date=datetime(2024, 3, 1), is_all_day=True)
    (event,) = project_events([task])

    moved = apply_drop(task, move_to_day(event, date(2024, 3, 5)))

    assert moved.due_date == datetime(2024, 3, 5)
    assert moved.is_all_day and moved.duration is None


def test_month_grid_starts_on_the_week_of_the_first() -> None:
    assert CalendarSettings().month_grid_start(date(2024, 3, 13)) == date(2024, 2, 26)
    assert CalendarSettings(first_day=6).month_grid_start(date(2024, 9, 30)) == date(2024, 9, 1)
