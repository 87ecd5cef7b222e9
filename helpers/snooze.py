"""Snooze presets for delivered reminders."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from core.settings import REMINDERS


@dataclass(frozen=True)
class SnoozeResult:
    fire_at: datetime
    slot: str


def snooze_slot(fire_at: datetime) -> str:
    return f"snooze-{fire_at.hour:02d}{fire_at.minute:02d}"


def minutes(now: datetime, minutes_delta: int | None = None) -> SnoozeResult:
    delta = REMINDERS.snooze_minutes if minutes_delta is None else minutes_delta
    fire_at = now.replace(second=0, microsecond=0) + timedelta(minutes=max(delta, 1))
    return SnoozeResult(fire_at=fire_at, slot=snooze_slot(fire_at))


__all__ = ["SnoozeResult", "minutes", "snooze_slot"]
