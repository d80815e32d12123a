"""Category to display color lookup."""
from __future__ import annotations

from typing import Dict

from .models import Category


CATEGORY_COLORS: Dict[Category, str] = {
    Category.PERSONAL: "#3B82F6",  # blue
    Category.UNI: "#10B981",  # green
    Category.WORK: "#F59E0B",  # amber
    Category.BACKLOG: "#6B7280",  # gray
}


def color_for(category: Category) -> str:
    """Return the display color bound to ``category``."""
    return CATEGORY_COLORS[Category.parse(category)]
