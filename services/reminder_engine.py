# dailynudge/services/reminder_engine.py
"""Computes, submits and retracts the alerts that belong to "today".

The engine owns no persistence. Callers hand it task and appointment values,
it talks to a :class:`services.delivery.DeliveryService`, and every failure of
that service degrades to "this alert may not appear".

Alert identifiers follow ``{kind}-{entity_id}-{slot}[-{date_stamp}]`` (see
:class:`models.alert.AlertKey`). One-shot task alerts carry the stamp of the
day they fire on, the recurring backup carries none, so "today's alerts" and
"every alert" of a task are both plain filters over parsed keys.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

from core.logs import get_logger
from core.settings import APPOINTMENTS, REMINDERS, AppointmentSettings, ReminderSettings
from helpers import snooze as snooze_presets
from helpers.datetime_utils import date_stamp
from models.alert import (
    APPOINTMENT_KIND,
    CATEGORY_APPOINTMENT,
    CATEGORY_NUDGE,
    CATEGORY_REMINDER,
    DAILY_SLOT,
    DAY_BEFORE_SLOT,
    DAY_OF_SLOT,
    MAIN_SLOT,
    TASK_KIND,
    AlertKey,
    AlertPayload,
    ScheduledAlert,
    actions_for,
    nudge_slot,
)
from models.appointment import Appointment
from models.task import Task
from services.delivery import DeliveryError, DeliveryService
from services.task_lifecycle import is_done_today, roll_over
from utils.clock import Clock


@dataclass(frozen=True)
class AlertActivation:
    """A user action on a delivered task alert, resolved to its task."""

    task_id: str
    action: str
    alert_id: str


class ReminderEngine:
    def __init__(
        self,
        clock: Clock,
        delivery: DeliveryService,
        settings: ReminderSettings = REMINDERS,
        appointments: AppointmentSettings = APPOINTMENTS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.clock = clock
        self.delivery = delivery
        self.settings = settings
        self.appointment_settings = appointments
        self.logger = logger or get_logger("engine")
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Serialization
    def _lock_for(self, entity_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(entity_id)
            if lock is None:
                lock = self._locks[entity_id] = threading.RLock()
            return lock

    def _forget_lock(self, entity_id: str) -> None:
        with self._locks_guard:
            self._locks.pop(entity_id, None)

    # ------------------------------------------------------------------
    # Alert construction
    def _task_payload(self, task: Task, *, nudge: bool = False) -> AlertPayload:
        if nudge:
            return AlertPayload(
                title=self.settings.nudge_title,
                body=self.settings.nudge_body.format(title=task.title),
                entity_id=task.id,
                category=CATEGORY_NUDGE,
            )
        return AlertPayload(
            title=self.settings.main_title,
            body=task.title,
            entity_id=task.id,
            category=CATEGORY_REMINDER,
        )

    def compute_today_alerts(self, task: Task) -> List[ScheduledAlert]:
        """Return the one-shot alerts :meth:`schedule_today` would submit now."""

        now = self.clock.now()
        today = self.clock.today()
        if not task.is_active or is_done_today(task, today):
            return []

        stamp = date_stamp(today)
        hour, minute = task.reminder_time.hour, task.reminder_time.minute
        alerts: List[ScheduledAlert] = []

        try:
            instant = self.clock.at(today, hour, minute)
        except ValueError as exc:
            self.logger.warning("Cannot compose main reminder for task %s: %s", task.id, exc)
            instant = None
        if instant is not None and instant > now:
            alerts.append(
                ScheduledAlert(
                    id=AlertKey(TASK_KIND, task.id, MAIN_SLOT, stamp).render(),
                    payload=self._task_payload(task),
                    fire_at=instant,
                )
            )

        # nudges run even when the main slot already passed
        for offset in range(1, self.settings.max_nudges + 1):
            nudge_hour = (hour + offset) % 24
            if self.settings.in_quiet_hours(nudge_hour):
                continue
            try:
                fire_at = self.clock.at(today, nudge_hour, minute)
            except ValueError as exc:
                self.logger.warning("Skipping nudge %s for task %s: %s", offset, task.id, exc)
                continue
            if fire_at <= now:
                continue
            alerts.append(
                ScheduledAlert(
                    id=AlertKey(TASK_KIND, task.id, nudge_slot(offset), stamp).render(),
                    payload=self._task_payload(task, nudge=True),
                    fire_at=fire_at,
                )
            )
        return alerts

    # ------------------------------------------------------------------
    # Delivery wrappers; failures never reach the caller
    def _submit(self, alert: ScheduledAlert) -> bool:
        try:
            if alert.repeats:
                self.delivery.submit_recurring_daily(alert.id, alert.time_of_day, alert.payload)
            else:
                self.delivery.submit_one_shot(alert.id, alert.fire_at, alert.payload)
        except DeliveryError as exc:
            self.logger.warning("Alert %s not scheduled: %s", alert.id, exc)
            return False
        except Exception as exc:
            self.logger.error("Alert %s submission crashed: %s", alert.id, exc)
            return False
        self.logger.debug("Scheduled %s", alert.id)
        return True

    def _cancel(self, alert_id: str) -> bool:
        try:
            self.delivery.cancel_by_id(alert_id)
        except Exception as exc:
            self.logger.warning("Cancel of %s failed: %s", alert_id, exc)
            return False
        return True

    def _matching_ids(self, predicate: Callable[[AlertKey], bool]) -> List[str]:
        found: List[str] = []
        for source in (self.delivery.list_pending, self.delivery.list_delivered):
            try:
                alerts = source()
            except Exception as exc:
                self.logger.warning("Listing alerts failed: %s", exc)
                continue
            for alert in alerts:
                key = AlertKey.parse(alert.id)
                if key is not None and predicate(key) and alert.id not in found:
                    found.append(alert.id)
        return found

    def _submit_all(self, alerts: Iterable[ScheduledAlert]) -> List[str]:
        return [alert.id for alert in alerts if self._submit(alert)]

    # ------------------------------------------------------------------
    # Task operations
    def schedule_today(self, task: Task) -> List[str]:
        """Submit today's main and nudge alerts; returns the accepted ids."""

        with self._lock_for(task.id):
            alerts = self.compute_today_alerts(task)
            submitted = self._submit_all(alerts)
            self.logger.info(
                "Task %s: %d of %d alerts scheduled for today", task.id, len(submitted), len(alerts)
            )
            return submitted

    def ensure_backup(self, task: Task) -> Optional[str]:
        """Register the recurring daily alert at the task's reminder time."""

        if not task.is_active:
            return None
        alert = ScheduledAlert(
            id=AlertKey(TASK_KIND, task.id, DAILY_SLOT).render(),
            payload=self._task_payload(task),
            time_of_day=task.reminder_time,
            repeats=True,
        )
        with self._lock_for(task.id):
            return alert.id if self._submit(alert) else None

    def cancel_all(self, task_id: str) -> List[str]:
        with self._lock_for(task_id):
            ids = self._matching_ids(lambda key: key.belongs_to(TASK_KIND, task_id))
            for alert_id in ids:
                self._cancel(alert_id)
            self.logger.info("Task %s: cancelled %d alerts", task_id, len(ids))
            return ids

    def cancel_today(self, task_id: str) -> List[str]:
        """Retract today's dated alerts of a task; the daily backup stays."""

        stamp = date_stamp(self.clock.today())
        with self._lock_for(task_id):
            ids = self._matching_ids(
                lambda key: key.belongs_to(TASK_KIND, task_id) and key.date_stamp == stamp
            )
            for alert_id in ids:
                self._cancel(alert_id)
            self.logger.info("Task %s: cancelled %d alerts for %s", task_id, len(ids), stamp)
            return ids

    def sync(self, task: Task) -> List[str]:
        with self._lock_for(task.id):
            if is_done_today(task, self.clock.today()):
                return self.cancel_today(task.id)
            return self.schedule_today(task)

    def reschedule_all_for_today(self, tasks: Iterable[Task]) -> List[Task]:
        """Daily rollover, then today's alerts for every active pending task.

        Returns the rolled-over values so the caller can persist them.
        """

        today = self.clock.today()
        rolled = [roll_over(task, today) for task in tasks]
        self.prune_delivered_before(today)
        for task in rolled:
            if not task.is_active or is_done_today(task, today):
                continue
            try:
                self.schedule_today(task)
            except Exception as exc:
                self.logger.error("Rescheduling task %s failed: %s", task.id, exc)
        self.reconcile_badge(rolled)
        return rolled

    def prune_delivered_before(self, day: date) -> List[str]:
        """Drop delivered dated alerts stamped with a day before ``day``."""

        stamp = date_stamp(day)
        try:
            delivered = self.delivery.list_delivered()
        except Exception as exc:
            self.logger.warning("Listing delivered alerts failed: %s", exc)
            return []
        stale = [
            alert.id
            for alert in delivered
            if alert.key is not None and alert.key.date_stamp and alert.key.date_stamp < stamp
        ]
        for alert_id in stale:
            self._cancel(alert_id)
        if stale:
            self.logger.info("Pruned %d delivered alerts older than %s", len(stale), stamp)
        return stale

    def snooze(self, task: Task) -> Optional[str]:
        result = snooze_presets.minutes(self.clock.now(), self.settings.snooze_minutes)
        alert = ScheduledAlert(
            id=AlertKey(TASK_KIND, task.id, result.slot, date_stamp(result.fire_at)).render(),
            payload=self._task_payload(task),
            fire_at=result.fire_at,
        )
        with self._lock_for(task.id):
            return alert.id if self._submit(alert) else None

    def reconcile_badge(self, tasks: Iterable[Task]) -> bool:
        """Clear the badge once every active task is done today."""

        today = self.clock.today()
        if not all(is_done_today(task, today) for task in tasks if task.is_active):
            return False
        try:
            self.delivery.clear_badge()
        except Exception as exc:
            self.logger.warning("Badge reset failed: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Appointments
    def _appointment_day(self, appointment: Appointment) -> date:
        tz = self.clock.tz
        return (appointment.date.astimezone(tz) if tz else appointment.date).date()

    def schedule_appointment_reminders(self, appointment: Appointment) -> List[str]:
        cfg = self.appointment_settings
        now = self.clock.now()
        day = self._appointment_day(appointment)
        candidates = (
            (DAY_BEFORE_SLOT, day - timedelta(days=1), cfg.day_before_hour, cfg.day_before_minute,
             cfg.day_before_title, cfg.day_before_body),
            (DAY_OF_SLOT, day, cfg.day_of_hour, cfg.day_of_minute, cfg.day_of_title, cfg.day_of_body),
        )
        alerts: List[ScheduledAlert] = []
        for slot, on_day, hour, minute, title, body in candidates:
            try:
                fire_at = self.clock.at(on_day, hour, minute)
            except ValueError as exc:
                self.logger.warning("Skipping %s reminder for appointment %s: %s", slot, appointment.id, exc)
                continue
            if fire_at <= now:
                continue
            alerts.append(
                ScheduledAlert(
                    id=AlertKey(APPOINTMENT_KIND, appointment.id, slot).render(),
                    payload=AlertPayload(
                        title=title, body=body, entity_id=appointment.id, category=CATEGORY_APPOINTMENT
                    ),
                    fire_at=fire_at,
                )
            )
        with self._lock_for(appointment.id):
            return self._submit_all(alerts)

    def cancel_appointment_reminders(self, appointment_id: str) -> List[str]:
        ids = [AlertKey(APPOINTMENT_KIND, appointment_id, slot).render() for slot in (DAY_BEFORE_SLOT, DAY_OF_SLOT)]
        with self._lock_for(appointment_id):
            for alert_id in ids:
                self._cancel(alert_id)
        return ids

    # ------------------------------------------------------------------
    # Collaborator hooks
    def on_task_created(self, task: Task) -> None:
        self.ensure_backup(task)
        self.sync(task)

    def on_task_marked_complete(self, task: Task) -> None:
        self.sync(task)

    def on_task_marked_incomplete(self, task: Task) -> None:
        self.sync(task)

    def on_task_deleted(self, task_id: str) -> None:
        self.cancel_all(task_id)
        self._forget_lock(task_id)

    def on_app_foreground_or_launch(self, tasks: Iterable[Task]) -> List[Task]:
        return self.reschedule_all_for_today(tasks)

    def on_appointment_saved(self, appointment: Appointment) -> List[str]:
        self.cancel_appointment_reminders(appointment.id)
        if appointment.date > self.clock.now():
            return self.schedule_appointment_reminders(appointment)
        return []

    def on_appointment_deleted(self, appointment_id: str) -> None:
        self.cancel_appointment_reminders(appointment_id)
        self._forget_lock(appointment_id)

    def on_alert_activated(self, alert_id: str, action: str) -> Optional[AlertActivation]:
        """Resolve a tapped task alert to the task it belongs to.

        Only the actions the alert's category offers are routed: ``MARK_DONE``
        and ``SNOOZE`` on reminders, ``MARK_DONE`` on nudges.
        """

        key = AlertKey.parse(alert_id)
        if key is None or key.kind != TASK_KIND or action not in actions_for(key.category):
            self.logger.debug("Ignoring action %s on %s", action, alert_id)
            return None
        return AlertActivation(task_id=key.entity_id, action=action, alert_id=alert_id)


__all__ = ["AlertActivation", "ReminderEngine"]
