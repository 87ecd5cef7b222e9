# dailynudge/models/appointment.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import uuid

from sqlmodel import Field, SQLModel


@dataclass(frozen=True)
class Appointment:
    """A calendar visit; only its ``date`` matters for reminders."""

    date: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    notes: str = ""


class AppointmentRow(SQLModel, table=True):
    __tablename__ = "appointment"

    id: str = Field(primary_key=True)
    date: str = Field(index=True)
    notes: str = ""

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "AppointmentRow":
        return cls(id=appointment.id, date=appointment.date.isoformat(), notes=appointment.notes)

    def to_appointment(self) -> Appointment:
        return Appointment(id=self.id, date=datetime.fromisoformat(self.date), notes=self.notes)


__all__ = ["Appointment", "AppointmentRow"]
