# dailynudge/services/task_store.py
from __future__ import annotations

from typing import Callable, List, Optional

from sqlmodel import Session, select

from models.appointment import Appointment, AppointmentRow
from models.task import Task, TaskRow
from storage.db import get_session


class TaskStore:
    """Persists immutable :class:`Task` values as ``reminder_task`` rows."""

    def __init__(self, session_factory: Callable[[], Session] = get_session) -> None:
        self.session_factory = session_factory

    def list_all(self) -> List[Task]:
        with self.session_factory() as s:
            rows = s.exec(select(TaskRow).order_by(TaskRow.reminder_hour, TaskRow.reminder_minute))
            return [row.to_task() for row in rows]

    def get(self, task_id: str) -> Optional[Task]:
        with self.session_factory() as s:
            row = s.get(TaskRow, task_id)
            return row.to_task() if row else None

    def count(self) -> int:
        with self.session_factory() as s:
            return len(s.exec(select(TaskRow.id)).all())

    def save(self, task: Task) -> Task:
        with self.session_factory() as s:
            row = s.get(TaskRow, task.id)
            if row is None:
                row = TaskRow.from_task(task)
            else:
                row.apply(task)
            s.add(row)
            s.commit()
        return task

    def save_many(self, tasks: List[Task]) -> None:
        with self.session_factory() as s:
            for task in tasks:
                row = s.get(TaskRow, task.id)
                if row is None:
                    continue
                row.apply(task)
                s.add(row)
            s.commit()

    def delete(self, task_id: str) -> bool:
        with self.session_factory() as s:
            row = s.get(TaskRow, task_id)
            if not row:
                return False
            s.delete(row)
            s.commit()
            return True


class AppointmentStore:
    def __init__(self, session_factory: Callable[[], Session] = get_session) -> None:
        self.session_factory = session_factory

    def list_all(self) -> List[Appointment]:
        with self.session_factory() as s:
            rows = s.exec(select(AppointmentRow).order_by(AppointmentRow.date))
            return [row.to_appointment() for row in rows]

    def get(self, appointment_id: str) -> Optional[Appointment]:
        with self.session_factory() as s:
            row = s.get(AppointmentRow, appointment_id)
            return row.to_appointment() if row else None

    def save(self, appointment: Appointment) -> Appointment:
        with self.session_factory() as s:
            row = s.get(AppointmentRow, appointment.id)
            if row is None:
                row = AppointmentRow.from_appointment(appointment)
            else:
                fresh = AppointmentRow.from_appointment(appointment)
                row.date = fresh.date
                row.notes = fresh.notes
            s.add(row)
            s.commit()
        return appointment

    def delete(self, appointment_id: str) -> bool:
        with self.session_factory() as s:
            row = s.get(AppointmentRow, appointment_id)
            if not row:
                return False
            s.delete(row)
            s.commit()
            return True


__all__ = ["AppointmentStore", "TaskStore"]
