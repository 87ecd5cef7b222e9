# dailynudge/ui/today.py
from __future__ import annotations

import asyncio
from datetime import datetime, time, timedelta
from typing import List

import flet as ft

from core.settings import UI
from helpers.datetime_utils import format_time_of_day, parse_time_input
from models.task import Task
from services.task_lifecycle import is_done_today, needs_attention
from ui.dialogs import close_alert_dialog, open_alert_dialog


class TodayPanel:
    def __init__(self, app_shell):
        self.app = app_shell
        self.svc = app_shell.tasks
        self.clock = app_shell.engine.clock
        self._tasks: list[Task] = []
        self._rollover_task: asyncio.Task | None = None

        self._list_holder = ft.Column(spacing=10)

        self.view = ft.Card(
            content=ft.Container(
                padding=12,
                content=ft.Column(
                    [
                        ft.Text("Today", size=18, weight=ft.FontWeight.W_600),
                        self._list_holder,
                    ],
                    spacing=12,
                ),
            )
        )

    # ---------- Data ----------
    def refresh(self, *, rollover: bool = True):
        if rollover:
            self.svc.refresh_for_today()
        self._tasks = self.svc.list_all()
        self._render_list()
        self._ensure_rollover_timer()

    # ---------- Rendering ----------
    def _render_list(self):
        controls = [self._build_item(task) for task in self._sorted_tasks()]
        if not controls:
            controls.append(self._empty_state())
        controls.append(self._add_button())
        self._list_holder.controls = controls
        self.app.page.update()

    def _sorted_tasks(self) -> List[Task]:
        today = self.clock.today()

        def group_key(task: Task) -> int:
            if not task.is_active:
                return 2
            return 1 if is_done_today(task, today) else 0

        return sorted(self._tasks, key=lambda t: (group_key(t), t.reminder_time, t.title.casefold()))

    def _build_item(self, task: Task) -> ft.Control:
        checked = is_done_today(task, self.clock.today())
        late = needs_attention(task, self.clock)

        checkbox = ft.Checkbox(
            value=checked,
            on_change=lambda e, tid=task.id: self._on_toggle(tid, e.control.value),
            tooltip="Mark as done",
            disabled=not task.is_active,
        )

        title = ft.Text(
            task.title,
            size=14,
            weight=ft.FontWeight.W_600,
            max_lines=1,
            overflow=ft.TextOverflow.ELLIPSIS,
            color=UI.theme.text_subtle if checked else None,
            style=ft.TextStyle(decoration=ft.TextDecoration.LINE_THROUGH if checked else None),
        )
        subtitle = ft.Text(
            format_time_of_day(task.reminder_time) + (" · did you forget?" if late else ""),
            size=12,
            color=UI.theme.attention if late else ft.Colors.BLUE_GREY_400,
        )

        actions = ft.Row(
            [
                ft.IconButton(
                    icon=ft.Icons.EDIT_OUTLINED,
                    tooltip="Edit",
                    on_click=lambda e, t=task: self._open_dialog(t),
                ),
                ft.IconButton(
                    icon=ft.Icons.DELETE_OUTLINE,
                    tooltip="Delete",
                    on_click=lambda e, tid=task.id: self._confirm_delete(tid),
                ),
            ],
            spacing=4,
        )

        item = ft.Container(
            content=ft.Row(
                [checkbox, ft.Column([title, subtitle], spacing=4, expand=True), actions],
                vertical_alignment=ft.CrossAxisAlignment.CENTER,
            ),
            padding=ft.padding.symmetric(horizontal=12, vertical=10),
            bgcolor=ft.Colors.SURFACE,
            border_radius=10,
            border=ft.border.all(1, ft.Colors.with_opacity(0.05, ft.Colors.ON_SURFACE)),
        )
        if not task.is_active:
            item.opacity = 0.6
        return item

    def _on_toggle(self, task_id: str, checked: bool):
        self.svc.set_done(task_id, bool(checked))
        self.refresh(rollover=False)

    def _add_button(self) -> ft.Control:
        return ft.TextButton(
            text="Add reminder",
            icon=ft.Icons.ADD,
            on_click=lambda _: self._open_dialog(),
        )

    def _empty_state(self) -> ft.Control:
        return ft.Row(
            [
                ft.Icon(ft.Icons.INFO_OUTLINE, color=ft.Colors.BLUE_GREY_300),
                ft.Text("No daily reminders yet", color=ft.Colors.BLUE_GREY_400),
            ],
            spacing=8,
        )

    # ---------- Dialogs ----------
    def _open_dialog(self, task: Task | None = None):
        title_tf = ft.TextField(label="Title", value=task.title if task else "", autofocus=True, max_length=120)
        time_tf = ft.TextField(
            label="Time (HH:MM)",
            value=format_time_of_day(task.reminder_time) if task else "09:00",
        )
        active_sw = ft.Switch(label="Active", value=task.is_active if task else True)

        def on_save(_):
            reminder_time: time | None = parse_time_input(time_tf.value)
            if reminder_time is None:
                self.app.toast("Enter a time like 08:30", ok=False)
                return
            try:
                if task:
                    self.svc.update(
                        task.id,
                        title=title_tf.value,
                        reminder_time=reminder_time,
                        is_active=bool(active_sw.value),
                    )
                else:
                    self.svc.create(
                        title=title_tf.value or "",
                        reminder_time=reminder_time,
                        is_active=bool(active_sw.value),
                    )
            except ValueError as ex:
                self.app.toast(str(ex), ok=False)
                return
            close_alert_dialog(self.app.page)
            self.refresh(rollover=False)
            self.app.toast("Saved")

        open_alert_dialog(
            self.app.page,
            title="Edit reminder" if task else "New daily reminder",
            content=ft.Container(width=380, content=ft.Column([title_tf, time_tf, active_sw], tight=True)),
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: close_alert_dialog(self.app.page)),
                ft.FilledButton("Save", icon=ft.Icons.SAVE, on_click=on_save),
            ],
        )

    def _confirm_delete(self, task_id: str):
        def on_delete(_):
            self.svc.delete(task_id)
            close_alert_dialog(self.app.page)
            self.refresh(rollover=False)
            self.app.toast("Deleted")

        open_alert_dialog(
            self.app.page,
            title="Delete reminder?",
            content=ft.Text("Its pending notifications are removed too."),
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: close_alert_dialog(self.app.page)),
                ft.FilledButton("Delete", icon=ft.Icons.DELETE_OUTLINE, on_click=on_delete),
            ],
        )

    # ---------- Rollover scheduling ----------
    def _seconds_until_midnight(self) -> float:
        now = datetime.now().astimezone()
        tomorrow = now.date() + timedelta(days=1)
        midnight = datetime.combine(tomorrow, datetime.min.time(), tzinfo=now.tzinfo)
        return max((midnight - now).total_seconds(), 1.0)

    async def _rollover_loop(self):
        while True:
            await asyncio.sleep(self._seconds_until_midnight() + 1)
            try:
                self.refresh()
            except Exception as exc:
                self.app.logger.error("Midnight rollover failed: %s", exc)

    def _ensure_rollover_timer(self):
        if self._rollover_task and not self._rollover_task.done():
            return
        self._rollover_task = self.app.page.run_task(self._rollover_loop)
