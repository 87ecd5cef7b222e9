# dailynudge/ui/appointments.py
from __future__ import annotations

from dataclasses import replace

import flet as ft

from helpers.datetime_utils import STAMP_FORMAT, format_time_of_day, parse_local_datetime
from models.appointment import Appointment
from ui.dialogs import close_alert_dialog, open_alert_dialog


class AppointmentsPanel:
    def __init__(self, app_shell):
        self.app = app_shell
        self.svc = app_shell.appointments
        self._list_holder = ft.Column(spacing=8)

        self.view = ft.Card(
            content=ft.Container(
                padding=12,
                content=ft.Column(
                    [
                        ft.Text("Appointments", size=18, weight=ft.FontWeight.W_600),
                        self._list_holder,
                    ],
                    spacing=12,
                ),
            )
        )

    def refresh(self):
        visits = sorted(self.svc.upcoming(), key=lambda a: a.date)
        controls = [self._build_item(visit) for visit in visits]
        if not controls:
            controls.append(ft.Text("No upcoming appointments", color=ft.Colors.BLUE_GREY_400))
        controls.append(
            ft.TextButton(text="Add appointment", icon=ft.Icons.EVENT, on_click=lambda _: self._open_dialog())
        )
        self._list_holder.controls = controls
        self.app.page.update()

    def _build_item(self, visit: Appointment) -> ft.Control:
        local = visit.date.astimezone()
        when = f"{local.strftime(STAMP_FORMAT)} {format_time_of_day(local.time())}"
        return ft.Container(
            content=ft.Row(
                [
                    ft.Icon(ft.Icons.LOCAL_HOSPITAL_OUTLINED, color=ft.Colors.PINK_300),
                    ft.Column(
                        [
                            ft.Text(when, size=14, weight=ft.FontWeight.W_600),
                            ft.Text(visit.notes or "-", size=12, color=ft.Colors.BLUE_GREY_400),
                        ],
                        spacing=4,
                        expand=True,
                    ),
                    ft.IconButton(
                        icon=ft.Icons.EDIT_OUTLINED, tooltip="Edit", on_click=lambda e, v=visit: self._open_dialog(v)
                    ),
                    ft.IconButton(
                        icon=ft.Icons.DELETE_OUTLINE,
                        tooltip="Delete",
                        on_click=lambda e, vid=visit.id: self._confirm_delete(vid),
                    ),
                ],
                vertical_alignment=ft.CrossAxisAlignment.CENTER,
            ),
            padding=ft.padding.symmetric(horizontal=12, vertical=8),
            bgcolor=ft.Colors.SURFACE,
            border_radius=10,
        )

    def _open_dialog(self, visit: Appointment | None = None):
        local = visit.date.astimezone() if visit else None
        date_tf = ft.TextField(
            label="Date (YYYY-MM-DD)",
            value=local.strftime(STAMP_FORMAT) if local else "",
            autofocus=True,
        )
        time_tf = ft.TextField(label="Time (HH:MM)", value=format_time_of_day(local.time()) if local else "09:00")
        notes_tf = ft.TextField(label="Notes", value=visit.notes if visit else "", multiline=True)

        def on_save(_):
            when = parse_local_datetime(date_tf.value, time_tf.value)
            if when is None:
                self.app.toast("Enter a date like 2024-05-20 and a time like 14:30", ok=False)
                return
            notes = (notes_tf.value or "").strip()
            if visit is None:
                self.svc.save(Appointment(date=when, notes=notes))
            elif notes == visit.notes:
                self.svc.reschedule(visit.id, when)
            else:
                self.svc.save(replace(visit, date=when, notes=notes))
            close_alert_dialog(self.app.page)
            self.refresh()
            self.app.toast("Saved")

        open_alert_dialog(
            self.app.page,
            title="Edit appointment" if visit else "New appointment",
            content=ft.Container(width=380, content=ft.Column([date_tf, time_tf, notes_tf], tight=True)),
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: close_alert_dialog(self.app.page)),
                ft.FilledButton("Save", icon=ft.Icons.SAVE, on_click=on_save),
            ],
        )

    def _confirm_delete(self, appointment_id: str):
        def on_delete(_):
            self.svc.delete(appointment_id)
            close_alert_dialog(self.app.page)
            self.refresh()
            self.app.toast("Deleted")

        open_alert_dialog(
            self.app.page,
            title="Delete appointment?",
            content=ft.Text("Its reminders are removed too."),
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: close_alert_dialog(self.app.page)),
                ft.FilledButton("Delete", icon=ft.Icons.DELETE_OUTLINE, on_click=on_delete),
            ],
        )
