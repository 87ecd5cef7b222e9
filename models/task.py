# dailynudge/models/task.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class Task:
    """A recurring daily task with a target time of day.

    Values are immutable; lifecycle changes go through
    :mod:`services.task_lifecycle` and come back as new instances.
    """

    title: str
    reminder_time: time
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    is_active: bool = True
    is_completed: bool = False
    last_completed_date: Optional[date] = None
    # persisted but not read by scheduling
    last_nudge_time: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)


class TaskRow(SQLModel, table=True):
    __tablename__ = "reminder_task"

    id: str = Field(primary_key=True)
    title: str = Field(index=True)
    reminder_hour: int
    reminder_minute: int
    is_active: bool = Field(default=True)
    is_completed: bool = Field(default=False)
    last_completed_date: Optional[str] = None
    last_nudge_time: Optional[str] = None
    created_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskRow":
        return cls(
            id=task.id,
            title=task.title,
            reminder_hour=task.reminder_time.hour,
            reminder_minute=task.reminder_time.minute,
            is_active=task.is_active,
            is_completed=task.is_completed,
            last_completed_date=task.last_completed_date.isoformat() if task.last_completed_date else None,
            last_nudge_time=task.last_nudge_time.isoformat() if task.last_nudge_time else None,
            created_at=task.created_at.isoformat(),
        )

    def apply(self, task: Task) -> None:
        """Copy every mutable field of ``task`` onto this row."""

        fresh = TaskRow.from_task(task)
        for name in (
            "title",
            "reminder_hour",
            "reminder_minute",
            "is_active",
            "is_completed",
            "last_completed_date",
            "last_nudge_time",
        ):
            setattr(self, name, getattr(fresh, name))

    def to_task(self) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            reminder_time=time(self.reminder_hour, self.reminder_minute),
            is_active=self.is_active,
            is_completed=self.is_completed,
            last_completed_date=date.fromisoformat(self.last_completed_date) if self.last_completed_date else None,
            last_nudge_time=datetime.fromisoformat(self.last_nudge_time) if self.last_nudge_time else None,
            created_at=datetime.fromisoformat(self.created_at),
        )


__all__ = ["Task", "TaskRow"]
