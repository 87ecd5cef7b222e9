"""Alert identifiers and payloads shared by the engine and delivery services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
import re
from typing import Optional


TASK_KIND = "task"
APPOINTMENT_KIND = "appointment"

MAIN_SLOT = "main"
DAILY_SLOT = "daily"
DAY_BEFORE_SLOT = "day-before"
DAY_OF_SLOT = "day-of"

CATEGORY_REMINDER = "TASK_REMINDER"
CATEGORY_NUDGE = "TASK_NUDGE"
CATEGORY_APPOINTMENT = "APPOINTMENT"

ACTION_MARK_DONE = "MARK_DONE"
ACTION_SNOOZE = "SNOOZE"

# nudges only offer "done"; appointments are informational
CATEGORY_ACTIONS = {
    CATEGORY_REMINDER: (ACTION_MARK_DONE, ACTION_SNOOZE),
    CATEGORY_NUDGE: (ACTION_MARK_DONE,),
    CATEGORY_APPOINTMENT: (),
}

_ID_RE = re.compile(
    r"^(?P<kind>task|appointment)-(?P<entity>.+)-"
    r"(?P<slot>main|daily|nudge-\d+|snooze-\d{4}|day-before|day-of)"
    r"(?:-(?P<stamp>\d{4}-\d{2}-\d{2}))?$"
)


def nudge_slot(offset: int) -> str:
    return f"nudge-{offset}"


def actions_for(category: str) -> tuple:
    return CATEGORY_ACTIONS.get(category, ())


@dataclass(frozen=True)
class AlertKey:
    """Structured form of ``{kind}-{entity_id}-{slot}[-{date_stamp}]``."""

    kind: str
    entity_id: str
    slot: str
    date_stamp: Optional[str] = None

    def render(self) -> str:
        base = f"{self.kind}-{self.entity_id}-{self.slot}"
        return f"{base}-{self.date_stamp}" if self.date_stamp else base

    def __str__(self) -> str:
        return self.render()

    @classmethod
    def parse(cls, alert_id: str) -> Optional["AlertKey"]:
        """Return the key for ``alert_id`` or ``None`` for foreign identifiers."""

        match = _ID_RE.match(alert_id or "")
        if not match:
            return None
        return cls(
            kind=match.group("kind"),
            entity_id=match.group("entity"),
            slot=match.group("slot"),
            date_stamp=match.group("stamp"),
        )

    def belongs_to(self, kind: str, entity_id: str) -> bool:
        return self.kind == kind and self.entity_id == entity_id

    @property
    def category(self) -> str:
        if self.kind == APPOINTMENT_KIND:
            return CATEGORY_APPOINTMENT
        if self.slot.startswith("nudge-"):
            return CATEGORY_NUDGE
        return CATEGORY_REMINDER


@dataclass(frozen=True)
class AlertPayload:
    title: str
    body: str
    entity_id: str
    category: str = CATEGORY_REMINDER


@dataclass(frozen=True)
class ScheduledAlert:
    """An alert as submitted to (or reported by) a delivery service.

    One-shot alerts carry ``fire_at``; recurring daily alerts carry
    ``time_of_day`` and ``repeats=True``.
    """

    id: str
    payload: AlertPayload
    fire_at: Optional[datetime] = None
    time_of_day: Optional[time] = None
    repeats: bool = False

    @property
    def key(self) -> Optional[AlertKey]:
        return AlertKey.parse(self.id)


__all__ = [
    "ACTION_MARK_DONE",
    "ACTION_SNOOZE",
    "APPOINTMENT_KIND",
    "AlertKey",
    "AlertPayload",
    "CATEGORY_ACTIONS",
    "CATEGORY_APPOINTMENT",
    "CATEGORY_NUDGE",
    "CATEGORY_REMINDER",
    "DAILY_SLOT",
    "DAY_BEFORE_SLOT",
    "DAY_OF_SLOT",
    "MAIN_SLOT",
    "ScheduledAlert",
    "TASK_KIND",
    "actions_for",
    "nudge_slot",
]
