from __future__ import annotations

from sqlmodel import Session, func, select

from seatplan.inventory import PersistedSeat, SeatPayload

from .models import LayoutSeat, SeatHold


class InventoryError(Exception):
    status_code = 400


class SeatNotFoundError(InventoryError):
    status_code = 404


class SeatInUseError(InventoryError):
    status_code = 409


def _to_persisted(seat: LayoutSeat) -> PersistedSeat:
    return PersistedSeat(id=seat.id, row=seat.row, number=seat.number, label=seat.label, type=seat.type)


def active_hold_count(session: Session, seat_id: str) -> int:
    return int(session.exec(select(func.count(SeatHold.id)).where(SeatHold.seat_id == seat_id)).one())


class SqlSeatInventory:
    """Seat inventory stored in the service database; one commit per call."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, layout_id: str, seat_id: str) -> LayoutSeat:
        seat = self.session.get(LayoutSeat, seat_id)
        if not seat or seat.layout_id != layout_id:
            raise SeatNotFoundError(f"seat not found: {seat_id}")
        return seat

    def list(self, layout_id: str) -> list[PersistedSeat]:
        seats = self.session.exec(
            select(LayoutSeat).where(LayoutSeat.layout_id == layout_id).order_by(LayoutSeat.row, LayoutSeat.number)
        ).all()
        return [_to_persisted(s) for s in seats]

    def create(self, layout_id: str, seat: SeatPayload) -> PersistedSeat:
        rec = LayoutSeat(layout_id=layout_id, row=seat.row, number=int(seat.number), label=seat.label, type=seat.type)
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return _to_persisted(rec)

    def update(self, layout_id: str, seat_id: str, seat: SeatPayload) -> PersistedSeat:
        rec = self._get(layout_id, seat_id)
        rec.row = seat.row
        rec.number = int(seat.number)
        rec.label = seat.label
        rec.type = seat.type
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return _to_persisted(rec)

    def delete(self, layout_id: str, seat_id: str) -> None:
        rec = self._get(layout_id, seat_id)
        holds = active_hold_count(self.session, seat_id)
        if holds:
            raise SeatInUseError(f"seat {rec.row}{rec.number} is referenced by {holds} active hold(s)")
        self.session.delete(rec)
        self.session.commit()
