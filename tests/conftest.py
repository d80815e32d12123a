import os
from datetime import datetime
from typing import Callable

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from caltask.colors import color_for
from caltask.models import Category, Task


NOW = datetime(2024, 3, 1, 8, 30)


@pytest.fixture(scope="session")
def qapp():
    """Provide a shared QApplication for tests that instantiate widgets."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Build consistent tasks with sensible defaults for the test at hand."""

    def factory(task_id: str = "t1", title: str = "Task", **fields) -> Task:
        category = Category.parse(fields.pop("category", Category.PERSONAL))
        return Task(id=task_id, title=title, category=category, color=color_for(category), **fields)

    return factory
