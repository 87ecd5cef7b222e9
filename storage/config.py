"""Simple JSON-backed user configuration."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

from core.settings import CONFIG_PATH, REMINDERS, ReminderSettings


@dataclass
class AppConfig:
    """User overrides persisted to ``config.json``.

    ``None`` keeps the built-in default from :data:`core.settings.REMINDERS`.
    """

    quiet_start_hour: Optional[int] = None
    quiet_end_hour: Optional[int] = None
    max_nudges: Optional[int] = None
    snooze_minutes: Optional[int] = None
    notifications_enabled: bool = True
    desktop_popups: bool = True


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _load_raw(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _hour(value: Any) -> Optional[int]:
    if isinstance(value, int) and 0 <= value <= 23:
        return value
    return None


def _positive(value: Any) -> Optional[int]:
    if isinstance(value, int) and value > 0:
        return value
    return None


def load_config(path: Optional[Path] = None) -> AppConfig:
    data = _load_raw(path or CONFIG_PATH)
    return AppConfig(
        quiet_start_hour=_hour(data.get("quiet_start_hour")),
        quiet_end_hour=_hour(data.get("quiet_end_hour")),
        max_nudges=_positive(data.get("max_nudges")),
        snooze_minutes=_positive(data.get("snooze_minutes")),
        notifications_enabled=bool(data.get("notifications_enabled", True)),
        desktop_popups=bool(data.get("desktop_popups", True)),
    )


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    target = path or CONFIG_PATH
    _ensure_parent(target)
    payload = json.dumps(asdict(config), ensure_ascii=False, indent=2, sort_keys=True)
    tmp = target.with_suffix(".tmp")
    try:
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(target)
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError:
                pass


def update_config(path: Optional[Path] = None, **changes: Any) -> AppConfig:
    target = path or CONFIG_PATH
    cfg = load_config(target)
    for key, value in changes.items():
        if hasattr(cfg, key):
            setattr(cfg, key, value)
    save_config(cfg, target)
    return cfg


def reminder_settings(config: AppConfig, base: ReminderSettings = REMINDERS) -> ReminderSettings:
    """Merge user overrides over the built-in reminder settings."""

    overrides = {
        name: getattr(config, name)
        for name in ("quiet_start_hour", "quiet_end_hour", "max_nudges", "snooze_minutes")
        if getattr(config, name) is not None
    }
    return replace(base, **overrides)


__all__ = ["AppConfig", "load_config", "reminder_settings", "save_config", "update_config"]
