"""SQLModel table for alerts that have already been shown."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


def _now() -> datetime:
    return datetime.now().astimezone()


class DeliveredAlert(SQLModel, table=True):
    id: str = Field(primary_key=True)
    title: str
    body: str
    entity_id: str = Field(index=True)
    category: str
    delivered_at: datetime = Field(default_factory=_now)
    seen: bool = Field(default=False, index=True)
    repeats: bool = Field(default=False)


__all__ = ["DeliveredAlert"]
