"""Runtime settings with environment overrides."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from .projection import CalendarSettings


logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path.home() / ".caltask" / "tasks.csv"


@dataclass(frozen=True)
class Settings:
    data_path: Path = DEFAULT_DATA_PATH
    log_level: str = "INFO"
    calendar: CalendarSettings = field(default_factory=CalendarSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read CALTASK_* variables; unparsable values keep the default."""
        env = os.environ if environ is None else environ
        settings = cls()
        if env.get("CALTASK_DATA"):
            settings = replace(settings, data_path=Path(env["CALTASK_DATA"]).expanduser())
        level = env.get("CALTASK_LOG_LEVEL", "").strip().upper()
        if level:
            if isinstance(logging.getLevelName(level), int):
                settings = replace(settings, log_level=level)
            else:
                logger.warning("Ignoring unknown log level %r", level)

        calendar = settings.calendar
        start = _parse_hour(env.get("CALTASK_DAY_START"))
        end = _parse_hour(env.get("CALTASK_DAY_END"))
        if start is not None:
            calendar = replace(calendar, day_start_hour=start)
        if end is not None:
            calendar = replace(calendar, day_end_hour=end)
        if calendar.day_start_hour < calendar.day_end_hour:
            settings = replace(settings, calendar=calendar)
        else:
            logger.warning("Ignoring empty calendar day %d-%d", calendar.day_start_hour, calendar.day_end_hour)
        return settings


def _parse_hour(value: Optional[str]) -> Optional[int]:
    text = value.strip() if value is not None else ""
    if not text:
        return None
    try:
        hour = int(text)
    except ValueError:
        return None
    if 0 <= hour <= 24:
        return hour
    return None
