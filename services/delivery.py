"""Contract between the reminder engine and a notification delivery backend."""
from __future__ import annotations

from datetime import datetime, time
from typing import List, Protocol

from models.alert import AlertPayload, ScheduledAlert


class DeliveryError(Exception):
    """A delivery backend could not accept or retract an alert."""


class PermissionDeniedError(DeliveryError):
    """Notifications are not allowed; every submission is refused."""


class DeliveryService(Protocol):
    """Primitives the engine relies on.

    Submitting an id that is already pending replaces it. Cancelling an id
    that is unknown (never created or already fired) is a no-op.
    """

    def submit_one_shot(self, alert_id: str, fire_at: datetime, payload: AlertPayload) -> None:
        ...

    def submit_recurring_daily(self, alert_id: str, time_of_day: time, payload: AlertPayload) -> None:
        ...

    def cancel_by_id(self, alert_id: str) -> None:
        ...

    def cancel_where_id_contains(self, substring: str) -> None:
        ...

    def list_pending(self) -> List[ScheduledAlert]:
        ...

    def list_delivered(self) -> List[ScheduledAlert]:
        ...

    def clear_badge(self) -> None:
        ...


__all__ = ["DeliveryError", "DeliveryService", "PermissionDeniedError"]
