"""Daily completion lifecycle of a :class:`models.task.Task`.

A task is either pending (not completed today) or done (completed today).
Every transition returns a new ``Task``; persisting it is the caller's job.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

from models.task import Task
from utils.clock import Clock


def is_done_today(task: Task, today: date) -> bool:
    return task.is_completed and task.last_completed_date == today


def mark_complete(task: Task, today: date) -> Task:
    return replace(task, is_completed=True, last_completed_date=today)


def mark_incomplete(task: Task) -> Task:
    return replace(task, is_completed=False, last_completed_date=None)


def roll_over(task: Task, today: date) -> Task:
    """Clear a completion flag left over from an earlier day."""

    if task.is_completed and task.last_completed_date != today:
        return replace(task, is_completed=False)
    return task


def today_reminder_instant(task: Task, clock: Clock) -> datetime:
    return clock.at(clock.today(), task.reminder_time.hour, task.reminder_time.minute)


def needs_attention(task: Task, clock: Clock) -> bool:
    if not task.is_active or is_done_today(task, clock.today()):
        return False
    try:
        return clock.now() > today_reminder_instant(task, clock)
    except ValueError:
        return False


__all__ = [
    "is_done_today",
    "mark_complete",
    "mark_incomplete",
    "needs_attention",
    "roll_over",
    "today_reminder_instant",
]
