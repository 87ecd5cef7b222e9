"""Domain values and ORM models exposed by the DailyNudge application."""
from .task import Task, TaskRow
from .appointment import Appointment, AppointmentRow
from .delivered_alert import DeliveredAlert

__all__ = ["Task", "TaskRow", "Appointment", "AppointmentRow", "DeliveredAlert"]
