from datetime import datetime, timedelta, timezone

import pytest

from models.appointment import Appointment
from services.appointments import AppointmentService
from services.task_store import AppointmentStore


def test_appointment_in_the_past_yields_nothing(engine, delivery, clock):
    visit = Appointment(id="a1", date=clock.now() - timedelta(days=1))

    assert engine.schedule_appointment_reminders(visit) == []
    assert delivery.submitted == []


def test_future_appointment_gets_two_reminders(engine, delivery):
    visit = Appointment(id="a1", date=datetime(2024, 5, 20, 14, 30, tzinfo=timezone.utc))

    submitted = engine.schedule_appointment_reminders(visit)

    assert submitted == ["appointment-a1-day-before", "appointment-a1-day-of"]
    assert delivery.pending["appointment-a1-day-before"].fire_at == datetime(
        2024, 5, 19, 9, 0, tzinfo=timezone.utc
    )
    assert delivery.pending["appointment-a1-day-of"].fire_at == datetime(
        2024, 5, 20, 7, 0, tzinfo=timezone.utc
    )
    assert delivery.pending["appointment-a1-day-of"].payload.category == "APPOINTMENT"


def test_only_future_halves_are_scheduled(engine, delivery):
    tomorrow = Appointment(id="a1", date=datetime(2024, 5, 15, 10, 0, tzinfo=timezone.utc))
    later_today = Appointment(id="a2", date=datetime(2024, 5, 14, 15, 0, tzinfo=timezone.utc))

    assert engine.schedule_appointment_reminders(tomorrow) == [
        "appointment-a1-day-before",
        "appointment-a1-day-of",
    ]
    assert engine.schedule_appointment_reminders(later_today) == []


def test_save_cancels_then_reschedules(engine, delivery):
    visit = Appointment(id="a1", date=datetime(2024, 5, 20, 14, 30, tzinfo=timezone.utc))
    engine.on_appointment_saved(visit)
    moved = Appointment(id="a1", date=datetime(2024, 5, 25, 11, 0, tzinfo=timezone.utc))

    engine.on_appointment_saved(moved)

    assert delivery.cancelled[-2:] == ["appointment-a1-day-before", "appointment-a1-day-of"]
    assert delivery.pending["appointment-a1-day-of"].fire_at == datetime(
        2024, 5, 25, 7, 0, tzinfo=timezone.utc
    )


def test_delete_cancels_both(engine, delivery):
    engine.on_appointment_saved(Appointment(id="a1", date=datetime(2024, 5, 20, 9, 0, tzinfo=timezone.utc)))
    engine.on_appointment_deleted("a1")
    assert delivery.pending == {}


@pytest.fixture()
def service(engine, session_factory):
    return AppointmentService(AppointmentStore(session_factory), engine)


def test_service_persists_and_schedules(service, delivery):
    visit = service.save(Appointment(date=datetime(2024, 5, 20, 14, 30, tzinfo=timezone.utc), notes="scan"))

    stored = service.store.get(visit.id)
    assert stored.date == visit.date
    assert stored.notes == "scan"
    assert f"appointment-{visit.id}-day-of" in delivery.pending
    assert [a.id for a in service.upcoming()] == [visit.id]


def test_service_reschedule_and_delete(service, delivery):
    visit = service.save(Appointment(date=datetime(2024, 5, 20, 14, 30, tzinfo=timezone.utc)))

    moved = service.reschedule(visit.id, datetime(2024, 5, 13, 14, 30, tzinfo=timezone.utc))
    assert moved.date.day == 13
    assert delivery.pending == {}
    assert service.upcoming() == []

    assert service.delete(visit.id) is True
    assert service.list_all() == []
    assert service.reschedule("missing", datetime(2024, 6, 1, tzinfo=timezone.utc)) is None


def test_editing_date_keeps_notes_and_moves_reminders(service, delivery):
    visit = service.save(Appointment(date=datetime(2024, 5, 20, 14, 30, tzinfo=timezone.utc), notes="bring scans"))

    moved = service.reschedule(visit.id, datetime(2024, 5, 22, 10, 0, tzinfo=timezone.utc))

    assert moved.notes == "bring scans"
    assert service.store.get(visit.id).notes == "bring scans"
    assert delivery.pending[f"appointment-{visit.id}-day-before"].fire_at == datetime(
        2024, 5, 21, 9, 0, tzinfo=timezone.utc
    )
