from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class SeatLayout(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    name: str
    kind: str = "theater"  # theater/banquet/hybrid

    # JSON configuration blob; see seatplan.layouts for shape.
    configuration_json: str = "{}"
    total_capacity: int = 0

    created_at: datetime = Field(default_factory=_utc_now)

    def configuration(self) -> dict:
        return json.loads(self.configuration_json or "{}")


class LayoutSeat(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    layout_id: str = Field(index=True, foreign_key="seatlayout.id")
    row: str
    number: int
    label: Optional[str] = None
    type: Optional[str] = None

    created_at: datetime = Field(default_factory=_utc_now)


class SeatHold(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    seat_id: str = Field(index=True, foreign_key="layoutseat.id")
    # Free-form reference to the owner (cart, ticket, ...).
    reference: str = ""

    created_at: datetime = Field(default_factory=_utc_now)
