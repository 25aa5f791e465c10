from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .plan import SeatPlan, reconciliation_key


@dataclass(frozen=True)
class PersistedSeat:
    id: str
    row: str
    number: int
    label: Optional[str] = None
    type: Optional[str] = None

    @property
    def key(self) -> str:
        return reconciliation_key(self.row, self.number)


@dataclass(frozen=True)
class SeatPayload:
    row: str
    number: int
    label: Optional[str] = None
    type: Optional[str] = None

    @property
    def key(self) -> str:
        return reconciliation_key(self.row, self.number)

    @property
    def display(self) -> str:
        return f"{self.row}{self.number}"


class SeatInventory(Protocol):
    """
    Remote seat store for a layout. Any method may raise; the exception (its type,
    a `status_code` attribute, or its message) is the only failure signal.
    """

    def list(self, layout_id: str) -> list[PersistedSeat]: ...

    def create(self, layout_id: str, seat: SeatPayload) -> PersistedSeat: ...

    def update(self, layout_id: str, seat_id: str, seat: SeatPayload) -> PersistedSeat: ...

    def delete(self, layout_id: str, seat_id: str) -> None: ...


def payloads_from_plan(plan: SeatPlan) -> list[SeatPayload]:
    return [
        SeatPayload(row=s.row_label, number=s.seat_number, label=s.label or None, type=s.seat_type or None)
        for s in plan.seats
    ]
