from datetime import datetime, time, timedelta, timezone

import pytest

from services.task_lifecycle import mark_complete
from services.task_store import TaskStore
from services.tasks import TaskService


TODAY = "2024-05-14"


@pytest.fixture()
def service(engine, session_factory):
    return TaskService(TaskStore(session_factory), engine)


def test_create_persists_and_schedules(service, delivery):
    task = service.create(title="  Prenatal vitamins ", reminder_time=time(9, 0))

    stored = service.get(task.id)
    assert stored == task
    assert stored.title == "Prenatal vitamins"
    assert f"task-{task.id}-daily" in delivery.pending
    assert f"task-{task.id}-main-{TODAY}" in delivery.pending


@pytest.mark.parametrize("title", ["", "   ", "x" * 121])
def test_create_validates_title(service, title):
    with pytest.raises(ValueError):
        service.create(title=title, reminder_time=time(9, 0))


def test_set_done_and_undo(service, delivery):
    task = service.create(title="Walk", reminder_time=time(20, 0))

    done = service.set_done(task.id, True)
    assert done.is_completed is True
    assert service.get(task.id).last_completed_date == done.last_completed_date
    assert not any(i.endswith(TODAY) for i in delivery.pending)
    assert f"task-{task.id}-daily" in delivery.pending
    assert delivery.badge_clears == 1

    undone = service.set_done(task.id, False)
    assert undone.is_completed is False
    assert f"task-{task.id}-main-{TODAY}" in delivery.pending


def test_set_done_missing_task(service):
    assert service.set_done("missing", True) is None


def test_delete_cancels_everything(service, delivery):
    task = service.create(title="Walk", reminder_time=time(20, 0))
    events = []
    service.subscribe("after_delete", events.append)

    assert service.delete(task.id) is True

    assert service.list_all() == []
    assert not any(task.id in i for i in delivery.pending)
    assert events == [task.id]


def test_update_time_rebuilds_alerts(service, delivery):
    task = service.create(title="Walk", reminder_time=time(20, 0))

    service.update(task.id, reminder_time=time(10, 15))

    assert delivery.pending[f"task-{task.id}-daily"].time_of_day == time(10, 15)
    assert delivery.pending[f"task-{task.id}-main-{TODAY}"].fire_at.hour == 10


def test_deactivate_removes_alerts(service, delivery):
    task = service.create(title="Walk", reminder_time=time(20, 0))

    updated = service.update(task.id, is_active=False)

    assert updated.is_active is False
    assert not any(task.id in i for i in delivery.pending)


def test_refresh_for_today_rolls_over_and_persists(service, delivery, clock):
    task = service.create(title="Walk", reminder_time=time(9, 0))
    service.set_done(task.id, True)

    clock.current = datetime(2024, 5, 15, 7, 0, tzinfo=timezone.utc)
    rolled = service.refresh_for_today()

    assert rolled[0].is_completed is False
    assert service.get(task.id).is_completed is False
    assert f"task-{task.id}-main-2024-05-15" in delivery.pending


def test_refresh_for_today_keeps_todays_completion(service, clock):
    task = service.create(title="Walk", reminder_time=time(9, 0))
    service.store.save(mark_complete(task, clock.today() - timedelta(days=1)))
    service.set_done(task.id, True)

    service.refresh_for_today()

    assert service.get(task.id).is_completed is True


def test_alert_actions_route_back(service, delivery):
    task = service.create(title="Walk", reminder_time=time(9, 0))

    snoozed = service.handle_alert_action(f"task-{task.id}-main-{TODAY}", "SNOOZE")
    assert snoozed.id == task.id
    assert f"task-{task.id}-snooze-0830-{TODAY}" in delivery.pending

    done = service.handle_alert_action(f"task-{task.id}-nudge-1-{TODAY}", "MARK_DONE")
    assert done.is_completed is True
    assert not any(i.endswith(TODAY) for i in delivery.pending)

    assert service.handle_alert_action("appointment-x-day-of", "MARK_DONE") is None
