from datetime import datetime
from pathlib import Path

import pytest

from caltask.errors import PersistenceError, TaskNotFound
from caltask.models import MAX_DURATION, Category
from caltask.storage import CsvTaskRepository, InMemoryTaskRepository, load_tasks, save_tasks


def test_save_and_load_roundtrip(tmp_path: Path, make_task) -> None:
    path = tmp_path / "tasks.csv"
    tasks = [
        make_task("1", "Timed", category=Category.WORK, due_date=datetime(2024, 3, 1, 9, 0), duration=2.5),
        make_task("2", "All day, with comma", due_date=datetime(2024, 3, 2), is_all_day=True, is_priority=True),
        make_task("3", "Someday", description="multi\nline", category=Category.BACKLOG),
    ]

    save_tasks(path, tasks)

    assert load_tasks(path) == tasks


def test_save_tasks_writes_blank_cells_for_missing_values(tmp_path: Path, make_task) -> None:
    path = tmp_path / "draft.csv"

    save_tasks(path, [make_task("1", "Notes")])

    text = path.read_text().splitlines()
    assert text[0] == "#caltask,1"
    assert text[1] == "id,title,description,category,color,due_date,is_all_day,duration,is_priority"
    assert text[2] == "1,Notes,,Personal,#3B82F6,,0,,0"


def test_load_repairs_inconsistent_rows(tmp_path: Path) -> None:
    path = tmp_path / "legacy.csv"
    path.write_text(
        "#caltask,1\n"
        "id,title,description,category,color,due_date,is_all_day,duration,is_priority\n"
        "1,Odd,,uni,#000000,2024-03-01T10:00,1,3,0\n"
        "2,Loose,,Nope,,,0,4,0\n"
        ",No id,,Work,,,0,,0\n",
        encoding="utf-8",
    )

    first, second = load_tasks(path)

    assert first.category is Category.UNI
    assert first.due_date == datetime(2024, 3, 1)
    assert first.duration is None
    assert second.category is Category.PERSONAL
    assert second.duration is None
    assert all(task.check_invariants() == [] for task in (first, second))


def test_load_caps_huge_durations(tmp_path: Path) -> None:
    path = tmp_path / "huge.csv"
    path.write_text(
        "#caltask,1\n"
        "id,title,description,category,color,due_date,is_all_day,duration,is_priority\n"
        "1,Huge,,Work,,2024-03-01T09:00,0,1e308,0\n"
        "2,Endless,,Work,,2024-03-01T09:00,0,inf,0\n",
        encoding="utf-8",
    )

    huge, endless = CsvTaskRepository(path).list()

    assert huge.duration == MAX_DURATION
    assert endless.duration == 1.0
    assert huge.check_invariants() == [] and endless.check_invariants() == []


def test_repository_turns_oversized_numbers_into_persistence_errors(tmp_path: Path) -> None:
    repository = CsvTaskRepository(tmp_path / "tasks.csv")

    with pytest.raises(PersistenceError):
        repository.create({"title": "Plan", "due_date": "2024-03-01T09:00", "duration": 10**400})


def test_load_rejects_foreign_files(tmp_path: Path) -> None:
    path = tmp_path / "other.csv"
    path.write_text("#duration,4\nname,start,end,work_package\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_tasks(path)


def test_csv_repository_crud(tmp_path: Path) -> None:
    repository = CsvTaskRepository(tmp_path / "nested" / "tasks.csv")
    assert repository.list() == []

    created = repository.create({"title": "Plan", "category": "Work", "due_date": "2024-03-01T09:00", "duration": 2})
    assert created.id
    assert created.color == "#F59E0B"

    updated = repository.update(created.id, {"is_all_day": True})
    assert updated.is_all_day and updated.duration is None
    assert updated.title == "Plan"
    assert CsvTaskRepository(repository.path).list() == [updated]

    repository.delete(created.id)
    assert repository.list() == []


def test_csv_repository_unknown_ids(tmp_path: Path) -> None:
    repository = CsvTaskRepository(tmp_path / "tasks.csv")

    with pytest.raises(TaskNotFound):
        repository.update("missing", {"title": "x"})
    with pytest.raises(TaskNotFound):
        repository.delete("missing")


def test_csv_repository_wraps_bad_files(tmp_path: Path) -> None:
    path = tmp_path / "tasks.csv"
    path.write_text("garbage\n", encoding="utf-8")

    with pytest.raises(PersistenceError):
        CsvTaskRepository(path).list()


def test_in_memory_repository_rejects_unknown_fields() -> None:
    repository = InMemoryTaskRepository()

    with pytest.raises(ValueError):
        repository.create({"title": "x", "owner": "someone"})
    with pytest.raises(TaskNotFound):
        repository.delete("missing")
