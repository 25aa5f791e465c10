from __future__ import annotations

import re
import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .geometry import clamp, ring_offsets
from .plan import CompiledSeat, LayoutError, SeatPlan, SectionInfo


DEFAULT_CHAIR_COUNT = 8
DEFAULT_TABLE_RADIUS = 60.0
TABLE_COLOR = "#f97316"
CANVAS_MARGIN = 60.0

_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def _new_id() -> str:
    return uuid.uuid4().hex


def sanitize_table_label(label: Optional[str]) -> str:
    """
    Row label used for a table's seats: upper-cased, alphanumerics only, "TABLE 4" -> "T4".
    """
    cleaned = _NON_ALNUM.sub("", (label or "").strip().upper()) or "TABLE"
    if cleaned.startswith("TABLE") and len(cleaned) > len("TABLE"):
        return "T" + cleaned[len("TABLE") :]
    return cleaned


class Chair(BaseModel):
    id: str = Field(default_factory=_new_id)
    label: str = ""
    angle: float = 0.0
    offset_x: float = 1.0
    offset_y: float = 0.0


def build_chairs(count: int) -> list[Chair]:
    return [
        Chair(label=f"Chair {i + 1}", angle=o.angle_deg, offset_x=o.offset_x, offset_y=o.offset_y)
        for i, o in enumerate(ring_offsets(count))
    ]


class Table(BaseModel):
    id: str = Field(default_factory=_new_id)
    label: str
    tier_code: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0
    radius: float = Field(default=DEFAULT_TABLE_RADIUS, gt=0)
    chair_count: int = Field(default=DEFAULT_CHAIR_COUNT, ge=1)
    chairs: list[Chair] = Field(default_factory=list)

    def model_post_init(self, __context) -> None:
        if len(self.chairs) != self.chair_count:
            self.chairs = build_chairs(self.chair_count)


class BanquetLayout(BaseModel):
    """Round tables placed on a canvas; chairs are generated around each table."""

    kind: Literal["banquet"] = "banquet"
    canvas_width: float = Field(default=960.0, gt=0)
    canvas_height: float = Field(default=520.0, gt=0)
    tables: list[Table] = Field(default_factory=list)

    def get_table(self, table_id: str) -> Table:
        for t in self.tables:
            if t.id == table_id:
                return t
        raise LayoutError(f"table not found: {table_id}")

    def next_table_label(self) -> str:
        """Smallest "Table N" whose seat row label no existing table uses."""
        taken = {sanitize_table_label(t.label) for t in self.tables}
        n = 1
        while sanitize_table_label(f"Table {n}") in taken:
            n += 1
        return f"Table {n}"

    def add_table(self, *, label: Optional[str] = None, chair_count: int = DEFAULT_CHAIR_COUNT) -> Table:
        n = len(self.tables) + 1
        table = Table(
            label=label or self.next_table_label(),
            chair_count=max(1, int(chair_count)),
        )
        self.tables.append(table)
        self.move_table(table.id, 160 + n * 25, 140 + n * 25)
        return table

    def move_table(self, table_id: str, x: float, y: float) -> Table:
        table = self.get_table(table_id)
        table.x = clamp(float(x), CANVAS_MARGIN, self.canvas_width - CANVAS_MARGIN)
        table.y = clamp(float(y), CANVAS_MARGIN, self.canvas_height - CANVAS_MARGIN)
        return table

    def set_chair_count(self, table_id: str, count: int) -> Table:
        table = self.get_table(table_id)
        count = max(1, int(count))
        table.chair_count = count
        table.chairs = build_chairs(count)
        return table

    def update_table(
        self,
        table_id: str,
        *,
        label: Optional[str] = None,
        radius: Optional[float] = None,
        rotation: Optional[float] = None,
        tier_code: Optional[str] = None,
    ) -> Table:
        table = self.get_table(table_id)
        if label is not None:
            table.label = label
        if radius is not None:
            if float(radius) <= 0:
                raise LayoutError("table radius must be positive")
            table.radius = float(radius)
        if rotation is not None:
            table.rotation = float(rotation) % 360.0
        if tier_code is not None:
            table.tier_code = tier_code or None
        return table

    def remove_table(self, table_id: str) -> None:
        table = self.get_table(table_id)
        self.tables.remove(table)

    def reset(self) -> None:
        self.tables.clear()


def compile_banquet(layout: BanquetLayout) -> SeatPlan:
    seats: list[CompiledSeat] = []
    sections: list[SectionInfo] = []
    for table_index, table in enumerate(layout.tables):
        row_label = sanitize_table_label(table.label)
        sections.append(SectionInfo(id=table.id, name=table.label, color=TABLE_COLOR))
        for i, chair in enumerate(table.chairs):
            number = i + 1
            seats.append(
                CompiledSeat(
                    row_label=row_label,
                    seat_number=number,
                    label=f"{row_label}-{number}",
                    section_id=table.id,
                    section_name=table.label,
                    section_color=TABLE_COLOR,
                    row_id=table.id,
                    row_index=table_index,
                    column_index=i,
                    seat_type=table.tier_code or table.label or None,
                    x=table.x + chair.offset_x * table.radius,
                    y=table.y + chair.offset_y * table.radius,
                )
            )
    return SeatPlan(seats=seats, sections=sections, columns=len(seats))
