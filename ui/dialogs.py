import flet as ft


def open_alert_dialog(page: ft.Page, *, title: str, content: ft.Control, actions: list[ft.Control]):
    dlg = ft.AlertDialog(
        modal=True,
        title=ft.Text(title),
        content=content,
        actions=actions,
        actions_alignment=ft.MainAxisAlignment.END,
    )
    page.dialog = dlg
    dlg.open = True
    page.update()
    return dlg


def close_alert_dialog(page: ft.Page):
    if page.dialog:
        page.dialog.open = False
        page.update()


def show_banner(page: ft.Page, *, text: str, actions: list[ft.Control]) -> ft.Banner:
    banner = ft.Banner(
        bgcolor=ft.Colors.PINK_50,
        leading=ft.Icon(ft.Icons.NOTIFICATIONS_ACTIVE_OUTLINED, color=ft.Colors.PINK_400),
        content=ft.Text(text),
        actions=actions,
    )
    page.banner = banner
    banner.open = True
    page.update()
    return banner


def close_banner(page: ft.Page):
    if page.banner:
        page.banner.open = False
        page.update()
