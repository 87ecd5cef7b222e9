# dailynudge/ui/app_shell.py
from __future__ import annotations

import flet as ft

from core.logs import get_logger
from core.settings import UI
from models.alert import ACTION_MARK_DONE, ACTION_SNOOZE, ScheduledAlert, actions_for
from services.appointments import AppointmentService
from services.notifier import SchedulerDeliveryService
from services.reminder_engine import ReminderEngine
from services.task_store import AppointmentStore, TaskStore
from services.tasks import TaskService
from storage.config import load_config, reminder_settings
from ui.appointments import AppointmentsPanel
from ui.dialogs import close_banner, show_banner
from ui.today import TodayPanel
from utils.clock import SystemClock


class AppShell:
    def __init__(self, page: ft.Page):
        self.page = page
        self.logger = get_logger("ui")

        self.page.title = UI.app_title
        self.page.horizontal_alignment = ft.CrossAxisAlignment.STRETCH
        self.page.vertical_alignment = ft.MainAxisAlignment.START

        config = load_config()
        self.delivery = SchedulerDeliveryService(
            enabled=config.notifications_enabled,
            desktop_popups=config.desktop_popups,
        )
        self.engine = ReminderEngine(SystemClock(), self.delivery, settings=reminder_settings(config))
        self.tasks = TaskService(TaskStore(), self.engine)
        self.appointments = AppointmentService(AppointmentStore(), self.engine)

        self._today = TodayPanel(self)
        self._appointments = AppointmentsPanel(self)
        self.delivery.subscribe(self._on_alert_delivered)
        self.page.on_app_lifecycle_state_change = self._on_lifecycle
        self.page.on_disconnect = lambda e: self.delivery.shutdown()

    def mount(self):
        self.delivery.start()
        self.page.add(
            ft.Container(
                ft.Column([self._today.view, self._appointments.view], spacing=16, scroll=ft.ScrollMode.AUTO),
                padding=16,
                bgcolor=UI.theme.surface_bg,
                expand=True,
            )
        )
        self._today.refresh()
        self._appointments.refresh()

    # ---------- Events ----------
    def _on_lifecycle(self, e: ft.AppLifecycleStateChangeEvent):
        if e.state == ft.AppLifecycleState.RESUME:
            self._today.refresh()
            self._appointments.refresh()

    def _on_alert_delivered(self, alert: ScheduledAlert):
        # runs on the scheduler thread
        offered = actions_for(alert.payload.category)
        actions = []
        if ACTION_MARK_DONE in offered:
            actions.append(
                ft.TextButton("Done", on_click=lambda e: self._on_alert_action(alert.id, ACTION_MARK_DONE))
            )
        if ACTION_SNOOZE in offered:
            label = f"Remind in {self.engine.settings.snooze_minutes} min"
            actions.append(ft.TextButton(label, on_click=lambda e: self._on_alert_action(alert.id, ACTION_SNOOZE)))
        actions.append(ft.TextButton("Dismiss" if actions else "OK", on_click=lambda e: close_banner(self.page)))
        show_banner(self.page, text=f"{alert.payload.title}: {alert.payload.body}", actions=actions)

    def _on_alert_action(self, alert_id: str, action: str):
        close_banner(self.page)
        self.tasks.handle_alert_action(alert_id, action)
        self._today.refresh(rollover=False)

    # ---------- Helpers ----------
    def toast(self, text: str, ok: bool = True):
        self.page.snack_bar = ft.SnackBar(
            ft.Text(text),
            bgcolor=None if ok else ft.Colors.RED_400,
        )
        self.page.snack_bar.open = True
        self.page.update()
