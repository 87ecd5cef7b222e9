# dailynudge/services/notifier.py
"""Local notification delivery backed by APScheduler and plyer.

Pending alerts are APScheduler jobs whose id is the alert id, so submitting
the same id twice replaces the first job. When a job fires the alert is
recorded in the ``deliveredalert`` table, shown as a desktop notification and
passed to subscribers (the UI).
"""
from __future__ import annotations

from datetime import datetime, time
from typing import Callable, List, Optional, Set

from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from plyer import notification
from sqlmodel import Session, select

from core.logs import get_logger
from core.settings import APP_NAME, NOTIFIER, NotifierSettings
from helpers.datetime_utils import format_time_of_day
from models.alert import AlertPayload, ScheduledAlert
from models.delivered_alert import DeliveredAlert
from services.delivery import PermissionDeniedError
from storage.db import get_engine, get_session


logger = get_logger("notifier")

_active: Optional["SchedulerDeliveryService"] = None


def fire_alert(
    alert_id: str,
    title: str,
    body: str,
    entity_id: str,
    category: str,
    repeats: bool = False,
    time_of_day: Optional[str] = None,
) -> None:
    """APScheduler job target; forwards to the running delivery service."""

    service = _active
    if service is None:
        logger.warning("Alert %s fired with no active delivery service", alert_id)
        return
    service.deliver(
        ScheduledAlert(
            id=alert_id,
            payload=AlertPayload(title=title, body=body, entity_id=entity_id, category=category),
            repeats=repeats,
            time_of_day=_parse_hhmm(time_of_day),
        )
    )


def _parse_hhmm(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    hours, minutes = value.split(":", 1)
    return time(int(hours), int(minutes))


def build_scheduler(settings: NotifierSettings = NOTIFIER) -> BackgroundScheduler:
    return BackgroundScheduler(
        jobstores={"default": SQLAlchemyJobStore(engine=get_engine(), tablename=settings.jobs_table)},
        job_defaults={"coalesce": True, "misfire_grace_time": settings.misfire_grace_sec},
    )


class SchedulerDeliveryService:
    def __init__(
        self,
        scheduler: Optional[BackgroundScheduler] = None,
        session_factory: Callable[[], Session] = get_session,
        *,
        enabled: bool = True,
        desktop_popups: bool = NOTIFIER.desktop_popups,
        settings: NotifierSettings = NOTIFIER,
    ) -> None:
        self.scheduler = scheduler or build_scheduler(settings)
        self.session_factory = session_factory
        self.enabled = enabled
        self.desktop_popups = desktop_popups
        self.settings = settings
        self._listeners: Set[Callable[[ScheduledAlert], None]] = set()

    # ---------- lifecycle ----------
    def start(self, *, paused: bool = False) -> None:
        global _active
        _active = self
        if not self.scheduler.running:
            self.scheduler.start(paused=paused)
            logger.info("Notification scheduler started")

    def shutdown(self) -> None:
        global _active
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        if _active is self:
            _active = None

    # ---------- events ----------
    def subscribe(self, callback: Callable[[ScheduledAlert], None]) -> None:
        self._listeners.add(callback)

    def unsubscribe(self, callback: Callable[[ScheduledAlert], None]) -> None:
        self._listeners.discard(callback)

    def _emit(self, alert: ScheduledAlert) -> None:
        for listener in list(self._listeners):
            try:
                listener(alert)
            except Exception as exc:
                logger.error("Alert listener failed for %s: %s", alert.id, exc)

    # ---------- submission ----------
    def _ensure_allowed(self) -> None:
        if not self.enabled:
            raise PermissionDeniedError("notifications are disabled")

    @staticmethod
    def _job_kwargs(alert_id: str, payload: AlertPayload, time_of_day: Optional[time] = None) -> dict:
        return {
            "alert_id": alert_id,
            "title": payload.title,
            "body": payload.body,
            "entity_id": payload.entity_id,
            "category": payload.category,
            "repeats": time_of_day is not None,
            "time_of_day": format_time_of_day(time_of_day) if time_of_day else None,
        }

    def submit_one_shot(self, alert_id: str, fire_at: datetime, payload: AlertPayload) -> None:
        self._ensure_allowed()
        self.scheduler.add_job(
            fire_alert,
            trigger=DateTrigger(run_date=fire_at),
            id=alert_id,
            name=payload.title,
            kwargs=self._job_kwargs(alert_id, payload),
            replace_existing=True,
        )

    def submit_recurring_daily(self, alert_id: str, time_of_day: time, payload: AlertPayload) -> None:
        self._ensure_allowed()
        self.scheduler.add_job(
            fire_alert,
            trigger=CronTrigger(hour=time_of_day.hour, minute=time_of_day.minute),
            id=alert_id,
            name=payload.title,
            kwargs=self._job_kwargs(alert_id, payload, time_of_day),
            replace_existing=True,
        )

    # ---------- retraction ----------
    def cancel_by_id(self, alert_id: str) -> None:
        try:
            self.scheduler.remove_job(alert_id)
        except JobLookupError:
            pass
        with self.session_factory() as s:
            row = s.get(DeliveredAlert, alert_id)
            if row:
                s.delete(row)
                s.commit()

    def cancel_where_id_contains(self, substring: str) -> None:
        ids = {a.id for a in self.list_pending()} | {a.id for a in self.list_delivered()}
        for alert_id in sorted(ids):
            if substring in alert_id:
                self.cancel_by_id(alert_id)

    # ---------- queries ----------
    def list_pending(self) -> List[ScheduledAlert]:
        result: List[ScheduledAlert] = []
        for job in self.scheduler.get_jobs():
            kwargs = job.kwargs or {}
            payload = AlertPayload(
                title=kwargs.get("title", job.name),
                body=kwargs.get("body", ""),
                entity_id=kwargs.get("entity_id", ""),
                category=kwargs.get("category", ""),
            )
            if isinstance(job.trigger, DateTrigger):
                result.append(ScheduledAlert(id=job.id, payload=payload, fire_at=job.trigger.run_date))
            else:
                result.append(
                    ScheduledAlert(
                        id=job.id,
                        payload=payload,
                        time_of_day=_parse_hhmm(kwargs.get("time_of_day")),
                        repeats=True,
                    )
                )
        return result

    def list_delivered(self) -> List[ScheduledAlert]:
        with self.session_factory() as s:
            rows = list(s.exec(select(DeliveredAlert).order_by(DeliveredAlert.delivered_at)))
        return [
            ScheduledAlert(
                id=row.id,
                payload=AlertPayload(
                    title=row.title, body=row.body, entity_id=row.entity_id, category=row.category
                ),
                fire_at=row.delivered_at,
                repeats=row.repeats,
            )
            for row in rows
        ]

    def badge_count(self) -> int:
        with self.session_factory() as s:
            return len(s.exec(select(DeliveredAlert).where(DeliveredAlert.seen == False)).all())  # noqa: E712

    def clear_badge(self) -> None:
        with self.session_factory() as s:
            rows = s.exec(select(DeliveredAlert).where(DeliveredAlert.seen == False)).all()  # noqa: E712
            for row in rows:
                row.seen = True
                s.add(row)
            s.commit()

    # ---------- delivery ----------
    def deliver(self, alert: ScheduledAlert) -> None:
        payload = alert.payload
        with self.session_factory() as s:
            row = s.get(DeliveredAlert, alert.id)
            if row is None:
                row = DeliveredAlert(
                    id=alert.id,
                    title=payload.title,
                    body=payload.body,
                    entity_id=payload.entity_id,
                    category=payload.category,
                    repeats=alert.repeats,
                )
            else:
                row.delivered_at = datetime.now().astimezone()
                row.seen = False
            s.add(row)
            s.commit()
        logger.info("Delivered %s", alert.id)

        if self.desktop_popups:
            try:
                notification.notify(
                    title=payload.title,
                    message=payload.body,
                    app_name=APP_NAME,
                    timeout=self.settings.popup_timeout_sec,
                )
            except Exception as exc:
                logger.warning("Desktop notification for %s failed: %s", alert.id, exc)
        self._emit(alert)


__all__ = ["SchedulerDeliveryService", "build_scheduler", "fire_alert"]
