"""Display order for the task sidebar."""
from __future__ import annotations

import locale
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .models import Category, Task


SortKey = Tuple[bool, bool, datetime, str, str]


def sort_key(task: Task) -> SortKey:
    """Priority first, dated before undated, earliest first, then title.

    The id closes the key so equal-looking tasks still order the same way
    whatever order they arrive in. Titles compare under the process
    LC_COLLATE setting, which `caltask.app.run` sets from the user locale.
    """
    return (
        not task.is_priority,
        task.due_date is None,
        task.due_date or datetime.min,
        locale.strxfrm(task.title),
        task.id,
    )


def order_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Return a new, sorted list; ``tasks`` is left untouched."""
    return sorted(tasks, key=sort_key)


def filter_by_category(tasks: Iterable[Task], category: Optional[Category]) -> List[Task]:
    """Keep tasks of ``category``; ``None`` keeps everything."""
    if category is None:
        return list(tasks)
    wanted = Category.parse(category)
    return [task for task in tasks if task.category == wanted]
