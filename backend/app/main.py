from __future__ import annotations

import json
from dataclasses import asdict

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlmodel import Session, select

from seatplan.layouts import compile_layout, dump_configuration, new_layout, parse_configuration
from seatplan.inventory import SeatPayload
from seatplan.plan import LayoutError, capacity_warning, duplicate_keys
from seatplan.settings import load_sync_settings
from seatplan.sync import DuplicateSeatKeysError, SeatSyncError, SeatSynchronizer

from .db import get_session, init_db
from .inventory import InventoryError, SqlSeatInventory
from .models import LayoutSeat, SeatHold, SeatLayout
from .schemas import (
    ConfigurationUpdate,
    HoldCreate,
    LayoutCreate,
    PreviewRequest,
    SeatCreate,
    SeatRead,
    SeatUpdate,
    SyncResult,
)


app = FastAPI(title="Seat Plan API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    init_db()


def _session() -> Session:
    return get_session()


def _get_layout(session: Session, layout_id: str) -> SeatLayout:
    layout = session.get(SeatLayout, layout_id)
    if not layout:
        raise HTTPException(status_code=404, detail="layout not found")
    return layout


def _parse(configuration: dict):
    try:
        return parse_configuration(configuration)
    except LayoutError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _layout_dict(layout: SeatLayout) -> dict:
    return {
        "id": layout.id,
        "name": layout.name,
        "kind": layout.kind,
        "total_capacity": layout.total_capacity,
        "configuration": layout.configuration(),
    }


def _inventory_error(e: InventoryError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.post("/layouts")
def create_layout(payload: LayoutCreate, session: Session = Depends(_session)) -> dict:
    state = _parse(payload.configuration) if payload.configuration else new_layout("theater")
    plan = compile_layout(state)
    layout = SeatLayout(
        name=payload.name,
        kind=state.kind,
        configuration_json=json.dumps(dump_configuration(state)),
        total_capacity=plan.capacity,
    )
    session.add(layout)
    session.commit()
    session.refresh(layout)
    return _layout_dict(layout)


@app.get("/layouts/{layout_id}")
def get_layout(layout_id: str, session: Session = Depends(_session)) -> dict:
    return _layout_dict(_get_layout(session, layout_id))


@app.put("/layouts/{layout_id}/configuration")
def save_configuration(layout_id: str, payload: ConfigurationUpdate, session: Session = Depends(_session)) -> dict:
    layout = _get_layout(session, layout_id)
    state = _parse(payload.configuration)
    plan = compile_layout(state)
    layout.kind = state.kind
    layout.configuration_json = json.dumps(dump_configuration(state))
    layout.total_capacity = plan.capacity
    session.add(layout)
    session.commit()
    session.refresh(layout)
    return _layout_dict(layout)


@app.post("/layouts/{layout_id}/preview")
def preview_layout(layout_id: str, payload: PreviewRequest, session: Session = Depends(_session)) -> dict:
    layout = _get_layout(session, layout_id)
    state = _parse(payload.configuration if payload.configuration is not None else layout.configuration())
    plan = compile_layout(state)
    dupes = duplicate_keys(plan)
    if dupes:
        logger.warning("layout {} preview has colliding seat keys: {}", layout_id, ", ".join(dupes[:10]))
    return {
        **plan.to_dict(),
        "duplicate_keys": dupes,
        "capacity_warning": capacity_warning(plan, payload.venue_max_capacity),
    }


@app.get("/layouts/{layout_id}/seats", response_model=list[SeatRead])
def list_seats(layout_id: str, session: Session = Depends(_session)) -> list[SeatRead]:
    _get_layout(session, layout_id)
    return [SeatRead(**asdict(s)) for s in SqlSeatInventory(session).list(layout_id)]


@app.post("/layouts/{layout_id}/seats", response_model=SeatRead)
def create_seat(layout_id: str, payload: SeatCreate, session: Session = Depends(_session)) -> SeatRead:
    _get_layout(session, layout_id)
    seat = SqlSeatInventory(session).create(layout_id, SeatPayload(**payload.model_dump()))
    return SeatRead(**asdict(seat))


@app.put("/layouts/{layout_id}/seats/{seat_id}", response_model=SeatRead)
def update_seat(layout_id: str, seat_id: str, payload: SeatUpdate, session: Session = Depends(_session)) -> SeatRead:
    _get_layout(session, layout_id)
    try:
        seat = SqlSeatInventory(session).update(layout_id, seat_id, SeatPayload(**payload.model_dump()))
    except InventoryError as e:
        raise _inventory_error(e) from e
    return SeatRead(**asdict(seat))


@app.delete("/layouts/{layout_id}/seats/{seat_id}")
def delete_seat(layout_id: str, seat_id: str, session: Session = Depends(_session)) -> dict:
    _get_layout(session, layout_id)
    try:
        SqlSeatInventory(session).delete(layout_id, seat_id)
    except InventoryError as e:
        raise _inventory_error(e) from e
    return {"deleted": True}


@app.post("/layouts/{layout_id}/seats/{seat_id}/holds")
def create_hold(layout_id: str, seat_id: str, payload: HoldCreate, session: Session = Depends(_session)) -> dict:
    seat = session.get(LayoutSeat, seat_id)
    if not seat or seat.layout_id != layout_id:
        raise HTTPException(status_code=404, detail="seat not found")
    hold = SeatHold(seat_id=seat_id, reference=payload.reference)
    session.add(hold)
    session.commit()
    session.refresh(hold)
    return {"id": hold.id, "seat_id": seat_id}


@app.delete("/holds/{hold_id}")
def release_hold(hold_id: int, session: Session = Depends(_session)) -> dict:
    hold = session.get(SeatHold, hold_id)
    if not hold:
        raise HTTPException(status_code=404, detail="hold not found")
    session.delete(hold)
    session.commit()
    return {"deleted": True}


@app.get("/layouts/{layout_id}/holds")
def list_holds(layout_id: str, session: Session = Depends(_session)) -> list[dict]:
    _get_layout(session, layout_id)
    rows = session.exec(
        select(SeatHold, LayoutSeat).where(SeatHold.seat_id == LayoutSeat.id, LayoutSeat.layout_id == layout_id)
    ).all()
    return [{"id": h.id, "seat_id": s.id, "seat": f"{s.row}{s.number}", "reference": h.reference} for (h, s) in rows]


@app.post("/layouts/{layout_id}/sync", response_model=SyncResult)
def sync_layout(layout_id: str, session: Session = Depends(_session)) -> SyncResult:
    """
    Make the layout's seat inventory match its stored configuration.
    Not transactional: on failure, phases that already ran stay applied.
    """
    layout = _get_layout(session, layout_id)
    plan = compile_layout(_parse(layout.configuration()))
    syncer = SeatSynchronizer(SqlSeatInventory(session), settings=load_sync_settings())
    try:
        report = syncer.sync(layout_id, plan)
    except DuplicateSeatKeysError as e:
        raise HTTPException(status_code=422, detail=e.to_dict()) from e
    except SeatSyncError as e:
        logger.warning("sync of layout {} failed: {} ({} item(s))", layout_id, e.code.value, len(e.details))
        raise HTTPException(status_code=409, detail=e.to_dict()) from e

    layout.total_capacity = plan.capacity
    session.add(layout)
    session.commit()
    return SyncResult(layout_id=layout_id, capacity=plan.capacity, **report.to_dict())
