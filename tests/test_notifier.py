from datetime import datetime, time, timedelta, timezone

import pytest
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from models.alert import AlertPayload
from models.task import Task
from services import notifier as notifier_module
from services.delivery import PermissionDeniedError
from services.notifier import SchedulerDeliveryService, fire_alert
from services.reminder_engine import ReminderEngine
from utils.clock import FixedClock, SystemClock


PAYLOAD = AlertPayload(title="Reminder", body="Take vitamins", entity_id="t1")


@pytest.fixture()
def service(session_factory):
    scheduler = BackgroundScheduler(jobstores={"default": MemoryJobStore()})
    svc = SchedulerDeliveryService(scheduler, session_factory, desktop_popups=False)
    svc.start(paused=True)
    yield svc
    svc.shutdown()


def _tomorrow_at(hour, minute=0):
    base = datetime.now().astimezone() + timedelta(days=1)
    return base.replace(hour=hour, minute=minute, second=0, microsecond=0)


def test_same_id_replaces_pending_job(service):
    first = _tomorrow_at(9)
    second = _tomorrow_at(10)

    service.submit_one_shot("task-t1-main-x", first, PAYLOAD)
    service.submit_one_shot("task-t1-main-x", second, PAYLOAD)

    pending = service.list_pending()
    assert [a.id for a in pending] == ["task-t1-main-x"]
    assert pending[0].fire_at == second
    assert pending[0].payload == PAYLOAD
    assert pending[0].repeats is False


def test_recurring_daily_job(service):
    service.submit_recurring_daily("task-t1-daily", time(7, 45), PAYLOAD)

    (alert,) = service.list_pending()
    assert alert.repeats is True
    assert alert.time_of_day == time(7, 45)


def test_cancel_unknown_is_noop(service):
    service.cancel_by_id("task-missing-daily")
    assert service.list_pending() == []


def test_cancel_where_id_contains(service):
    service.submit_one_shot("task-t1-main-x", _tomorrow_at(9), PAYLOAD)
    service.submit_recurring_daily("task-t1-daily", time(9, 0), PAYLOAD)
    service.submit_recurring_daily("task-t2-daily", time(9, 0), PAYLOAD)

    service.cancel_where_id_contains("task-t1")

    assert [a.id for a in service.list_pending()] == ["task-t2-daily"]


def test_disabled_service_refuses_submissions(session_factory):
    svc = SchedulerDeliveryService(
        BackgroundScheduler(jobstores={"default": MemoryJobStore()}),
        session_factory,
        enabled=False,
        desktop_popups=False,
    )
    with pytest.raises(PermissionDeniedError):
        svc.submit_one_shot("task-t1-main-x", _tomorrow_at(9), PAYLOAD)


def test_fired_alert_is_recorded_and_broadcast(service):
    received = []
    service.subscribe(received.append)

    fire_alert(alert_id="task-t1-main-x", title="Reminder", body="Take vitamins", entity_id="t1", category="TASK_REMINDER")

    (delivered,) = service.list_delivered()
    assert delivered.id == "task-t1-main-x"
    assert delivered.payload.body == "Take vitamins"
    assert [a.id for a in received] == ["task-t1-main-x"]
    assert service.badge_count() == 1

    service.clear_badge()
    assert service.badge_count() == 0

    service.cancel_by_id("task-t1-main-x")
    assert service.list_delivered() == []


def test_fire_without_active_service_is_ignored(service, monkeypatch):
    monkeypatch.setattr(notifier_module, "_active", None)
    fire_alert(alert_id="task-t1-daily", title="Reminder", body="x", entity_id="t1", category="TASK_REMINDER")
    assert service.list_delivered() == []


def test_engine_against_scheduler(service):
    engine = ReminderEngine(SystemClock(), service)
    task_alerts = [
        ("task-t1-main-2099-01-01", _tomorrow_at(9)),
        ("task-t1-nudge-1-2099-01-01", _tomorrow_at(10)),
    ]
    for alert_id, fire_at in task_alerts:
        service.submit_one_shot(alert_id, fire_at, PAYLOAD)
    service.submit_recurring_daily("task-t1-daily", time(9, 0), PAYLOAD)
    service.submit_recurring_daily("task-t10-daily", time(9, 0), PAYLOAD)

    cancelled = engine.cancel_all("t1")

    assert sorted(cancelled) == sorted(["task-t1-main-2099-01-01", "task-t1-nudge-1-2099-01-01", "task-t1-daily"])
    assert [a.id for a in service.list_pending()] == ["task-t10-daily"]


def test_week_of_unfinished_task_does_not_pile_up(service):
    clock = FixedClock(datetime(2024, 5, 14, 8, 0, tzinfo=timezone.utc))
    engine = ReminderEngine(clock, service)
    task = Task(title="Take vitamins", reminder_time=time(9, 0), id="t1")

    for _ in range(7):
        engine.schedule_today(task)
        for alert in service.list_pending():
            service.scheduler.remove_job(alert.id)
            service.deliver(alert)
        clock.advance(days=1)

    assert len(service.list_delivered()) == 13 * 7

    engine.reschedule_all_for_today([task])

    assert service.list_delivered() == []
    assert service.badge_count() == 0
    assert all(a.id.endswith("2024-05-21") for a in service.list_pending())
