from __future__ import annotations

import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .geometry import (
    Bounds,
    GeometryError,
    circle_shape,
    clamp,
    grid_points,
    polygon_shape,
    rectangle_shape,
    shape_contains_point,
)
from .plan import CompiledSeat, LayoutError, SeatPlan, SectionInfo, normalize_row


DEFAULT_SECTION_COLORS = ["#0EA5E9", "#EC4899", "#22C55E", "#F97316", "#6366F1"]
GRID_PADDING = 20.0
GENERATED_ROW_LABEL = "ZONE"
LOOSE_ROW_LABEL = "GA"
DEFAULT_SEAT_TYPE = "STANDARD"

ElementType = Literal["stage", "screen", "walkway", "entry-door", "exit-door", "custom"]
SectionShape = Literal["rectangle", "circle", "polygon"]
ItemKind = Literal["section", "element", "seat"]


def _new_id() -> str:
    return uuid.uuid4().hex


class Canvas(BaseModel):
    width: float = Field(default=1200.0, gt=0)
    height: float = Field(default=700.0, gt=0)
    grid_size: Optional[float] = 20.0
    zoom: Optional[float] = 1.0


class HybridSection(BaseModel):
    id: str = Field(default_factory=_new_id)
    label: str = ""
    shape: SectionShape = "rectangle"
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None
    radius: Optional[float] = None
    rotation: float = 0.0
    color: Optional[str] = None
    # Only used by shape="polygon": [[x, y], ...] in canvas coordinates.
    points: list[tuple[float, float]] = Field(default_factory=list)

    def bounds(self) -> Bounds:
        if self.shape == "circle":
            r = self.radius or 90.0
            return Bounds(self.x, self.y, self.width or r * 2, self.height or r * 2)
        if self.shape == "polygon" and len(self.points) >= 3:
            xs = [p[0] for p in self.points]
            ys = [p[1] for p in self.points]
            return Bounds(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))
        return Bounds(self.x, self.y, self.width or 180.0, self.height or 140.0)

    def contains(self, x: float, y: float) -> bool:
        b = self.bounds()
        if self.shape == "circle":
            cx, cy = b.center
            shape = circle_shape(cx, cy, min(b.width, b.height) / 2.0)
        elif self.shape == "polygon":
            shape = polygon_shape(self.points)
        else:
            shape = rectangle_shape(b, self.rotation)
        return shape_contains_point(shape, x, y)


class HybridElement(BaseModel):
    id: str = Field(default_factory=_new_id)
    type: ElementType = "custom"
    label: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None
    radius: Optional[float] = None
    rotation: float = 0.0
    color: Optional[str] = None


class HybridSeat(BaseModel):
    id: str = Field(default_factory=_new_id)
    section_id: Optional[str] = None
    label: Optional[str] = None
    row_label: Optional[str] = None
    number: Optional[int] = Field(default=None, ge=0)
    tier_code: Optional[str] = None
    type: Optional[str] = None
    x: float
    y: float
    rotation: float = 0.0
    radius: Optional[float] = None


def _element_label(kind: str) -> str:
    return " ".join(w.capitalize() for w in kind.replace("-", " ").split())


def _element_color(kind: str) -> str:
    if kind == "stage":
        return "#0f172a"
    if "door" in kind:
        return "#0891b2"
    return "#475569"


class HybridLayout(BaseModel):
    """
    Free-form canvas: sections, fixtures (stage, doors, ...) and individually placed seats.
    Seats can be placed one by one or generated as a grid inside a section.
    """

    kind: Literal["hybrid"] = "hybrid"
    canvas: Canvas = Field(default_factory=Canvas)
    sections: list[HybridSection] = Field(default_factory=list)
    elements: list[HybridElement] = Field(default_factory=list)
    seats: list[HybridSeat] = Field(default_factory=list)

    def get_section(self, section_id: str) -> HybridSection:
        for s in self.sections:
            if s.id == section_id:
                return s
        raise LayoutError(f"section not found: {section_id}")

    def _find(self, kind: ItemKind, item_id: str):
        items = {"section": self.sections, "element": self.elements, "seat": self.seats}.get(kind)
        if items is None:
            raise LayoutError(f"unknown item kind: {kind}")
        for it in items:
            if it.id == item_id:
                return it
        raise LayoutError(f"{kind} not found: {item_id}")

    def next_section_label(self, shape: SectionShape = "rectangle") -> str:
        base = "Circle" if shape == "circle" else "Zone"
        taken = {normalize_row(s.label) for s in self.sections}
        n = 1
        while normalize_row(f"{base} {n}") in taken:
            n += 1
        return f"{base} {n}"

    def add_section(self, shape: SectionShape = "rectangle", *, label: Optional[str] = None) -> HybridSection:
        w, h = self.canvas.width, self.canvas.height
        sec = HybridSection(
            label=label or self.next_section_label(shape),
            shape=shape,
            x=w / 2 - 80,
            y=h / 2 - 60,
            width=180.0 if shape == "rectangle" else None,
            height=140.0 if shape == "rectangle" else None,
            radius=90.0 if shape == "circle" else None,
            color=DEFAULT_SECTION_COLORS[(len(self.sections) + 1) % len(DEFAULT_SECTION_COLORS)],
        )
        self.sections.append(sec)
        return sec

    def add_element(self, kind: ElementType, *, label: Optional[str] = None) -> HybridElement:
        el = HybridElement(
            type=kind,
            label=label or _element_label(kind),
            x=self.canvas.width / 2,
            y=60.0,
            width=260.0 if kind == "stage" else 140.0,
            height=60.0 if kind == "walkway" else 80.0,
            color=_element_color(kind),
        )
        self.elements.append(el)
        return el

    def place_seat(
        self,
        x: float,
        y: float,
        *,
        section_id: Optional[str] = None,
        row_label: Optional[str] = None,
        number: Optional[int] = None,
        tier_code: Optional[str] = None,
        seat_type: Optional[str] = None,
        label: Optional[str] = None,
    ) -> HybridSeat:
        x = clamp(float(x), 0.0, self.canvas.width)
        y = clamp(float(y), 0.0, self.canvas.height)
        if section_id is not None:
            self.get_section(section_id)
        else:
            section_id = self.section_at(x, y)
        seat = HybridSeat(
            section_id=section_id,
            row_label=row_label,
            number=number,
            tier_code=tier_code,
            type=seat_type,
            label=label,
            x=x,
            y=y,
        )
        self.seats.append(seat)
        return seat

    def section_at(self, x: float, y: float) -> Optional[str]:
        """Topmost (last drawn) section containing the point."""
        for sec in reversed(self.sections):
            if sec.contains(x, y):
                return sec.id
        return None

    def move_item(self, kind: ItemKind, item_id: str, x: float, y: float) -> None:
        item = self._find(kind, item_id)
        item.x = clamp(float(x), 0.0, self.canvas.width)
        item.y = clamp(float(y), 0.0, self.canvas.height)

    def remove_section(self, section_id: str) -> None:
        sec = self.get_section(section_id)
        self.sections.remove(sec)
        self.seats = [s for s in self.seats if s.section_id != section_id]

    def remove_element(self, element_id: str) -> None:
        self.elements.remove(self._find("element", element_id))

    def remove_seat(self, seat_id: str) -> None:
        self.seats.remove(self._find("seat", seat_id))

    def generate_section_seats(self, section_id: str, rows: int, cols: int) -> list[HybridSeat]:
        """
        Replace every seat of the section with a rows x cols grid.
        Seats of other sections are left as they are.
        """
        sec = self.get_section(section_id)
        try:
            points = grid_points(sec.bounds(), int(rows), int(cols), padding=GRID_PADDING)
        except GeometryError as e:
            raise LayoutError(str(e)) from e
        row_label = sec.label or GENERATED_ROW_LABEL
        generated = [
            HybridSeat(
                section_id=section_id,
                row_label=row_label,
                number=i + 1,
                type=DEFAULT_SEAT_TYPE,
                x=px,
                y=py,
            )
            for i, (px, py) in enumerate(points)
        ]
        self.seats = [s for s in self.seats if s.section_id != section_id] + generated
        return generated


def compile_hybrid(layout: HybridLayout) -> SeatPlan:
    sections = {s.id: s for s in layout.sections}

    # Explicit numbers are reserved first so auto-numbered seats never take them.
    used: dict[str, set[int]] = {}
    resolved_rows: list[str] = []
    for seat in layout.seats:
        sec = sections.get(seat.section_id or "")
        row = (seat.row_label or "").strip() or (sec.label.strip() if sec and sec.label else "") or LOOSE_ROW_LABEL
        resolved_rows.append(row)
        if seat.number is not None:
            used.setdefault(row, set()).add(int(seat.number))

    seats: list[CompiledSeat] = []
    row_order: list[str] = []
    for seat, row in zip(layout.seats, resolved_rows):
        taken = used.setdefault(row, set())
        if seat.number is not None:
            number = int(seat.number)
        else:
            number = max(taken, default=0) + 1
            taken.add(number)
        if row not in row_order:
            row_order.append(row)
        sec = sections.get(seat.section_id or "")
        seats.append(
            CompiledSeat(
                row_label=row,
                seat_number=number,
                label=seat.label or f"{row}{number}",
                section_id=sec.id if sec else "",
                section_name=sec.label if sec else "",
                section_color=(sec.color or "") if sec else "",
                row_id=seat.id,
                row_index=row_order.index(row),
                column_index=number - 1 if number > 0 else 0,
                seat_type=seat.type or seat.tier_code or None,
                x=seat.x,
                y=seat.y,
            )
        )
    return SeatPlan(
        seats=seats,
        sections=[SectionInfo(id=s.id, name=s.label, color=s.color or "") for s in layout.sections],
        columns=len(seats),
    )
