# dailynudge/services/tasks.py
from __future__ import annotations

from dataclasses import replace
from datetime import time
from typing import Callable, Dict, List, Optional, Set

from core.logs import get_logger
from models.alert import ACTION_MARK_DONE, ACTION_SNOOZE
from models.task import Task
from services.reminder_engine import ReminderEngine
from services.task_lifecycle import is_done_today, mark_complete, mark_incomplete
from services.task_store import TaskStore


MAX_TITLE_LENGTH = 120


def _clean_title(title: Optional[str]) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValueError("Title must not be empty")
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValueError("Title is too long")
    return cleaned


class TaskService:
    """Task CRUD that keeps the engine's alerts in step with every change."""

    MAX_TASKS = 200

    def __init__(self, store: TaskStore, engine: ReminderEngine) -> None:
        self.store = store
        self.engine = engine
        self.logger = get_logger("tasks")
        self._listeners: Dict[str, Set[Callable[[str], None]]] = {
            "after_create": set(),
            "after_update": set(),
            "after_delete": set(),
        }

    # ---------- events ----------
    def subscribe(self, event: str, callback: Callable[[str], None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unsupported event: {event}")
        self._listeners[event].add(callback)

    def unsubscribe(self, event: str, callback: Callable[[str], None]) -> None:
        if event not in self._listeners:
            return
        self._listeners[event].discard(callback)

    def _emit(self, event: str, task_id: str) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(task_id)
            except Exception as exc:
                self.logger.error("%s listener failed for %s: %s", event, task_id, exc)

    # ---------- queries ----------
    def list_all(self) -> List[Task]:
        return self.store.list_all()

    def get(self, task_id: str) -> Optional[Task]:
        return self.store.get(task_id)

    # ---------- CRUD ----------
    def create(self, *, title: str, reminder_time: time, is_active: bool = True) -> Task:
        cleaned = _clean_title(title)
        if self.store.count() >= self.MAX_TASKS:
            raise ValueError(f"Task limit reached ({self.MAX_TASKS})")

        task = self.store.save(Task(title=cleaned, reminder_time=reminder_time, is_active=is_active))
        self.engine.on_task_created(task)
        self.logger.info("Task created: %s at %s", task.id, reminder_time)
        self._emit("after_create", task.id)
        return task

    def update(
        self,
        task_id: str,
        *,
        title: Optional[str] = None,
        reminder_time: Optional[time] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[Task]:
        current = self.store.get(task_id)
        if current is None:
            return None

        changes = {}
        if title is not None:
            changes["title"] = _clean_title(title)
        if reminder_time is not None:
            changes["reminder_time"] = reminder_time
        if is_active is not None:
            changes["is_active"] = is_active
        task = self.store.save(replace(current, **changes))

        # old alerts carry the old time and title; rebuild from scratch
        self.engine.cancel_all(task.id)
        if task.is_active:
            self.engine.ensure_backup(task)
            self.engine.sync(task)
        self._emit("after_update", task.id)
        return task

    def set_done(self, task_id: str, done: bool) -> Optional[Task]:
        task = self.store.get(task_id)
        if task is None:
            return None

        today = self.engine.clock.today()
        if done:
            task = self.store.save(mark_complete(task, today))
            self.engine.on_task_marked_complete(task)
            self.engine.reconcile_badge(self.store.list_all())
        elif is_done_today(task, today):
            task = self.store.save(mark_incomplete(task))
            self.engine.on_task_marked_incomplete(task)
        self._emit("after_update", task.id)
        return task

    def delete(self, task_id: str) -> bool:
        self.engine.on_task_deleted(task_id)
        removed = self.store.delete(task_id)
        if removed:
            self.logger.info("Task deleted: %s", task_id)
            self._emit("after_delete", task_id)
        return removed

    # ---------- rollover ----------
    def refresh_for_today(self) -> List[Task]:
        """Run on launch and on every foreground: rollover, then reschedule."""

        before = {task.id: task for task in self.store.list_all()}
        rolled = self.engine.on_app_foreground_or_launch(before.values())
        changed = [task for task in rolled if task != before.get(task.id)]
        if changed:
            self.store.save_many(changed)
            self.logger.info("Rolled over %d tasks", len(changed))
        return rolled

    # ---------- alert actions ----------
    def handle_alert_action(self, alert_id: str, action: str) -> Optional[Task]:
        activation = self.engine.on_alert_activated(alert_id, action)
        if activation is None:
            return None
        if activation.action == ACTION_MARK_DONE:
            return self.set_done(activation.task_id, True)
        if activation.action == ACTION_SNOOZE:
            task = self.store.get(activation.task_id)
            if task is not None and task.is_active:
                self.engine.snooze(task)
            return task
        return None


__all__ = ["TaskService"]
