from datetime import datetime
from itertools import permutations

from caltask.models import Category
from caltask.ordering import filter_by_category, order_tasks


def _titles(tasks):
    return [task.title for task in tasks]


def test_priority_beats_earlier_date(make_task) -> None:
    a = make_task("a", "A", is_priority=True, due_date=datetime(2024, 3, 5))
    b = make_task("b", "B", is_priority=False, due_date=datetime(2024, 3, 1))

    assert order_tasks([b, a]) == [a, b]


def test_equal_dates_fall_back_to_title(make_task) -> None:
    due = datetime(2024, 3, 1, 9, 0)
    banana = make_task("1", "Banana", due_date=due)
    apple = make_task("2", "Apple", due_date=due)

    assert _titles(order_tasks([banana, apple])) == ["Apple", "Banana"]


def test_dated_tasks_come_before_undated(make_task) -> None:
    undated = make_task("1", "Aardvark")
    dated = make_task("2", "Zebra", due_date=datetime(2030, 1, 1))

    assert order_tasks([undated, dated]) == [dated, undated]


def test_time_of_day_breaks_same_day_ties(make_task) -> None:
    late = make_task("1", "Late", due_date=datetime(2024, 3, 1, 17, 0))
    early = make_task("2", "Early", due_date=datetime(2024, 3, 1, 8, 0))

    assert _titles(order_tasks([late, early])) == ["Early", "Late"]


def test_order_is_idempotent_and_ignores_input_order(make_task) -> None:
    tasks = [
        make_task("1", "Report", due_date=datetime(2024, 3, 2, 10, 0)),
        make_task("2", "Report", due_date=datetime(2024, 3, 2, 10, 0)),
        make_task("3", "Call", is_priority=True),
        make_task("4", "Backlog item", category=Category.BACKLOG),
        make_task("5", "Lecture", due_date=datetime(2024, 3, 1), is_all_day=True),
    ]
    expected = order_tasks(tasks)

    assert order_tasks(expected) == expected
    for arrangement in permutations(tasks):
        assert order_tasks(arrangement) == expected


def test_order_does_not_mutate_input(make_task) -> None:
    tasks = [make_task("1", "B"), make_task("2", "A")]
    snapshot = list(tasks)

    ordered = order_tasks(tasks)

    assert tasks == snapshot
    assert ordered is not tasks


def test_filter_by_category(make_task) -> None:
    work = make_task("1", "Ship", category=Category.WORK)
    uni = make_task("2", "Study", category=Category.UNI)

    assert filter_by_category([work, uni], None) == [work, uni]
    assert filter_by_category([work, uni], Category.UNI) == [uni]
    assert filter_by_category([work, uni], "Work") == [work]
