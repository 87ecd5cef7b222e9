from models.alert import AlertKey, actions_for


def test_render_with_and_without_stamp():
    assert AlertKey("task", "abc", "main", "2024-05-14").render() == "task-abc-main-2024-05-14"
    assert str(AlertKey("task", "abc", "daily")) == "task-abc-daily"


def test_parse_uuid_entity_ids():
    entity = "6f1c2d3e-0000-4a5b-9c8d-112233445566"
    key = AlertKey.parse(f"task-{entity}-nudge-11-2024-05-14")

    assert key == AlertKey("task", entity, "nudge-11", "2024-05-14")
    assert AlertKey.parse(f"task-{entity}-daily") == AlertKey("task", entity, "daily")


def test_parse_appointment_and_snooze_slots():
    assert AlertKey.parse("appointment-a1-day-before") == AlertKey("appointment", "a1", "day-before")
    assert AlertKey.parse("task-t1-snooze-0830-2024-05-14").slot == "snooze-0830"


def test_parse_rejects_foreign_ids():
    assert AlertKey.parse("doctor-visit-a1") is None
    assert AlertKey.parse("task-t1-weekly") is None
    assert AlertKey.parse("") is None


def test_structured_match_avoids_prefix_collisions():
    short = AlertKey.parse("task-1-daily")
    longer = AlertKey.parse("task-12-daily")
    appointment = AlertKey.parse("appointment-1-day-of")

    assert "task-1" in "task-12-daily"
    assert short.belongs_to("task", "1")
    assert not longer.belongs_to("task", "1")
    assert not appointment.belongs_to("task", "1")


def test_category_and_offered_actions():
    nudge = AlertKey.parse("task-t1-nudge-2-2024-05-14")
    main = AlertKey.parse("task-t1-main-2024-05-14")
    visit = AlertKey.parse("appointment-a1-day-before")

    assert nudge.category == "TASK_NUDGE"
    assert main.category == "TASK_REMINDER"
    assert visit.category == "APPOINTMENT"
    assert actions_for(nudge.category) == ("MARK_DONE",)
    assert actions_for(main.category) == ("MARK_DONE", "SNOOZE")
    assert actions_for(visit.category) == ()
    assert actions_for("UNKNOWN") == ()
