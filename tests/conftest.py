import os
from pathlib import Path
import sys
import tempfile
from datetime import datetime, timezone
from typing import Dict, List

import pytest

os.environ.setdefault("DAILYNUDGE_DATA_DIR", tempfile.mkdtemp(prefix="dailynudge-tests-"))

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import models  # noqa: E402,F401
from models.alert import ScheduledAlert  # noqa: E402
from services.delivery import PermissionDeniedError  # noqa: E402
from services.reminder_engine import ReminderEngine  # noqa: E402
from utils.clock import FixedClock  # noqa: E402


class FakeDelivery:
    """In-memory delivery service recording every call."""

    def __init__(self):
        self.pending: Dict[str, ScheduledAlert] = {}
        self.delivered: Dict[str, ScheduledAlert] = {}
        self.submitted: List[str] = []
        self.cancelled: List[str] = []
        self.badge_clears = 0
        self.denied = False

    def submit_one_shot(self, alert_id, fire_at, payload):
        if self.denied:
            raise PermissionDeniedError("denied")
        self.submitted.append(alert_id)
        self.pending[alert_id] = ScheduledAlert(id=alert_id, payload=payload, fire_at=fire_at)

    def submit_recurring_daily(self, alert_id, time_of_day, payload):
        if self.denied:
            raise PermissionDeniedError("denied")
        self.submitted.append(alert_id)
        self.pending[alert_id] = ScheduledAlert(
            id=alert_id, payload=payload, time_of_day=time_of_day, repeats=True
        )

    def cancel_by_id(self, alert_id):
        self.cancelled.append(alert_id)
        self.pending.pop(alert_id, None)
        self.delivered.pop(alert_id, None)

    def cancel_where_id_contains(self, substring):
        for alert_id in list(self.pending) + list(self.delivered):
            if substring in alert_id:
                self.cancel_by_id(alert_id)

    def list_pending(self):
        return list(self.pending.values())

    def list_delivered(self):
        return list(self.delivered.values())

    def clear_badge(self):
        self.badge_clears += 1

    # test helper: simulate the backend firing an alert
    def fire(self, alert_id):
        alert = self.pending[alert_id]
        if not alert.repeats:
            del self.pending[alert_id]
        self.delivered[alert_id] = alert


@pytest.fixture()
def clock():
    # Tuesday morning, 08:00 UTC
    return FixedClock(datetime(2024, 5, 14, 8, 0, tzinfo=timezone.utc))


@pytest.fixture()
def delivery():
    return FakeDelivery()


@pytest.fixture()
def engine(clock, delivery):
    return ReminderEngine(clock, delivery)


@pytest.fixture()
def session_factory():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)

    def factory():
        return Session(engine)

    return factory
