from pathlib import Path

from caltask.colors import CATEGORY_COLORS, color_for
from caltask.config import DEFAULT_DATA_PATH, Settings
from caltask.models import Category


def test_defaults_without_environment() -> None:
    settings = Settings.from_env({})

    assert settings.data_path == DEFAULT_DATA_PATH
    assert settings.log_level == "INFO"
    assert settings.calendar.day_start_hour == 6
    assert settings.calendar.day_end_hour == 22


def test_environment_overrides(tmp_path: Path) -> None:
    settings = Settings.from_env(
        {
            "CALTASK_DATA": str(tmp_path / "tasks.csv"),
            "CALTASK_LOG_LEVEL": "debug",
            "CALTASK_DAY_START": "7",
            "CALTASK_DAY_END": "20",
        }
    )

    assert settings.data_path == tmp_path / "tasks.csv"
    assert settings.log_level == "DEBUG"
    assert settings.calendar.slots_per_day == 26


def test_unparsable_values_keep_defaults() -> None:
    settings = Settings.from_env(
        {"CALTASK_LOG_LEVEL": "chatty", "CALTASK_DAY_START": "late", "CALTASK_DAY_END": "3"}
    )

    assert settings.log_level == "INFO"
    assert settings.calendar.day_start_hour == 6
    assert settings.calendar.day_end_hour == 22


def test_category_colors_are_stable_and_distinct() -> None:
    assert color_for(Category.PERSONAL) == "#3B82F6"
    assert color_for(Category.UNI) == "#10B981"
    assert color_for(Category.WORK) == "#F59E0B"
    assert color_for(Category.BACKLOG) == "#6B7280"
    assert color_for("work") == color_for(Category.WORK)
    assert len(set(CATEGORY_COLORS.values())) == len(Category)
