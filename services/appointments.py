# dailynudge/services/appointments.py
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from models.appointment import Appointment
from services.reminder_engine import ReminderEngine
from services.task_store import AppointmentStore


class AppointmentService:
    def __init__(self, store: AppointmentStore, engine: ReminderEngine) -> None:
        self.store = store
        self.engine = engine

    def list_all(self) -> List[Appointment]:
        return self.store.list_all()

    def upcoming(self) -> List[Appointment]:
        now = self.engine.clock.now()
        return [appt for appt in self.store.list_all() if appt.date > now]

    def save(self, appointment: Appointment) -> Appointment:
        if appointment.date.tzinfo is None:
            appointment = replace(appointment, date=appointment.date.astimezone())
        saved = self.store.save(appointment)
        self.engine.on_appointment_saved(saved)
        return saved

    def reschedule(self, appointment_id: str, new_date: datetime) -> Optional[Appointment]:
        current = self.store.get(appointment_id)
        if current is None:
            return None
        return self.save(replace(current, date=new_date))

    def delete(self, appointment_id: str) -> bool:
        self.engine.on_appointment_deleted(appointment_id)
        return self.store.delete(appointment_id)


__all__ = ["AppointmentService"]
