"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return the user data directory for ``app_name``.

    ``DAILYNUDGE_DATA_DIR`` wins over the OS-specific default.
    """

    environ = dict(env if env is not None else os.environ)
    override = environ.get("DAILYNUDGE_DATA_DIR")
    if override:
        return Path(override).expanduser()

    platform_id = (platform or sys.platform).lower()
    home_dir = Path(home or Path.home())
    sanitized = (app_name.strip() or "app").replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = home_dir / "Library" / "Application Support"
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return base.expanduser() / sanitized


APP_NAME = "DailyNudge"


DATA_DIR = get_default_data_dir(APP_NAME)
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "app.db"
CONFIG_PATH = DATA_DIR / "config.json"


@dataclass(frozen=True)
class ReminderSettings:
    max_nudges: int = 12
    # nudges are suppressed for hours in [quiet_start_hour, quiet_end_hour)
    quiet_start_hour: int = 23
    quiet_end_hour: int = 7
    snooze_minutes: int = 30
    main_title: str = "Reminder"
    nudge_title: str = "Gentle Reminder"
    nudge_body: str = "Don't forget: {title}"

    def in_quiet_hours(self, hour: int) -> bool:
        if self.quiet_start_hour == self.quiet_end_hour:
            return False
        if self.quiet_start_hour < self.quiet_end_hour:
            return self.quiet_start_hour <= hour < self.quiet_end_hour
        return hour >= self.quiet_start_hour or hour < self.quiet_end_hour


REMINDERS = ReminderSettings()


@dataclass(frozen=True)
class AppointmentSettings:
    day_before_hour: int = 9
    day_before_minute: int = 0
    day_of_hour: int = 7
    day_of_minute: int = 0
    day_before_title: str = "Doctor's Visit Tomorrow"
    day_before_body: str = "You have a doctor's appointment tomorrow. Don't forget to prepare any questions!"
    day_of_title: str = "Doctor's Visit Today"
    day_of_body: str = "Your appointment is today. Take care!"


APPOINTMENTS = AppointmentSettings()


@dataclass(frozen=True)
class NotifierSettings:
    desktop_popups: bool = True
    popup_timeout_sec: int = 10
    misfire_grace_sec: int = 300
    jobs_table: str = "apscheduler_jobs"


NOTIFIER = NotifierSettings()


@dataclass(frozen=True)
class LoggingSettings:
    directory: Path = LOG_DIR
    level: str = "INFO"
    max_bytes: int = 1_000_000
    backup_count: int = 3
    fmt: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


LOGGING = LoggingSettings()


@dataclass(frozen=True)
class ThemeColors:
    surface_bg: str = "#F1F5F9"
    text_subtle: str = "#6B7280"
    attention: str = "#EF4444"


@dataclass(frozen=True)
class UISettings:
    app_title: str = APP_NAME
    theme_mode: str = "system"
    color_scheme_seed: str = "#DB2777"
    window_min_width: int = 480
    window_min_height: int = 600
    theme: ThemeColors = ThemeColors()


UI = UISettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "LOG_DIR",
    "DB_PATH",
    "CONFIG_PATH",
    "REMINDERS",
    "APPOINTMENTS",
    "NOTIFIER",
    "LOGGING",
    "UI",
    "AppointmentSettings",
    "ReminderSettings",
    "get_default_data_dir",
]
