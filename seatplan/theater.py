from __future__ import annotations

import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .plan import CompiledSeat, LayoutError, RowSummary, SeatPlan, SectionInfo


SEAT_COLORS = [
    "#2563eb",
    "#059669",
    "#db2777",
    "#f97316",
    "#7c3aed",
    "#0ea5e9",
    "#dc2626",
    "#65a30d",
]

DEFAULT_SECTION_ID = "section-main"
WALKWAY_LABEL = "Walkway"


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def default_row_label(row_index: int) -> str:
    return chr(65 + (row_index % 26))


class Section(BaseModel):
    id: str
    name: str
    color: str = SEAT_COLORS[0]


class SeatCell(BaseModel):
    id: str = Field(default_factory=lambda: _new_id("seat"))
    enabled: bool = True


class TheaterRow(BaseModel):
    id: str = Field(default_factory=lambda: _new_id("row"))
    label: str
    section_id: str
    start_number: int = Field(default=1, ge=0)
    is_walkway: bool = False
    seats: list[SeatCell] = Field(default_factory=list)

    @classmethod
    def build(cls, row_index: int, column_count: int, section_id: str, *, walkway: bool = False) -> "TheaterRow":
        return cls(
            label=WALKWAY_LABEL if walkway else default_row_label(row_index),
            section_id=section_id,
            is_walkway=walkway,
            seats=[SeatCell(enabled=not walkway) for _ in range(column_count)],
        )


def normalize_walkway_columns(columns: Optional[list[int]], column_count: int) -> list[int]:
    if not columns:
        return []
    return sorted({int(c) for c in columns if 0 <= int(c) < column_count})


class TheaterLayout(BaseModel):
    """
    Editable theater grid: rows x columns of seat cells, walkway rows/columns and named sections.

    All mutators work in place. Walkway columns are re-applied on load so that a stored blob
    with stale cell flags still satisfies "walkway column cells are disabled".
    """

    kind: Literal["theater"] = "theater"
    rows: list[TheaterRow] = Field(default_factory=list)
    sections: list[Section] = Field(default_factory=list)
    column_count: int = Field(default=1, ge=1)
    walkway_columns: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _hydrate(self) -> "TheaterLayout":
        self.walkway_columns = normalize_walkway_columns(self.walkway_columns, self.column_count)
        for row in self.rows:
            if len(row.seats) < self.column_count:
                row.seats.extend(SeatCell(enabled=not row.is_walkway) for _ in range(self.column_count - len(row.seats)))
            elif len(row.seats) > self.column_count:
                del row.seats[self.column_count :]
        self._apply_walkway_columns()
        return self

    # --- construction -------------------------------------------------

    @classmethod
    def default(cls) -> "TheaterLayout":
        return cls.create(1, 1)

    @classmethod
    def create(cls, rows: int, columns: int, sections: Optional[list[Section]] = None) -> "TheaterLayout":
        if sections:
            secs = [s.model_copy() for s in sections]
        else:
            secs = [Section(id=DEFAULT_SECTION_ID, name="Main Floor", color=SEAT_COLORS[0])]
        rows = max(1, int(rows))
        columns = max(1, int(columns))
        section_id = secs[0].id
        return cls(
            rows=[TheaterRow.build(i, columns, section_id) for i in range(rows)],
            sections=secs,
            column_count=columns,
        )

    # --- lookups ------------------------------------------------------

    def _row_index(self, row_id: str) -> int:
        for i, row in enumerate(self.rows):
            if row.id == row_id:
                return i
        raise LayoutError(f"row not found: {row_id}")

    def get_row(self, row_id: str) -> TheaterRow:
        return self.rows[self._row_index(row_id)]

    def get_section(self, section_id: str) -> Optional[Section]:
        for s in self.sections:
            if s.id == section_id:
                return s
        return None

    def _fallback_section_id(self) -> str:
        return self.sections[0].id if self.sections else "section-1"

    def _validate_column(self, column: int) -> None:
        if not (0 <= column < self.column_count):
            raise LayoutError(f"column out of bounds: {column}")

    def _apply_walkway_columns(self) -> None:
        if not self.walkway_columns:
            return
        walkway = set(self.walkway_columns)
        for row in self.rows:
            if row.is_walkway:
                continue
            for c, cell in enumerate(row.seats):
                if c in walkway and cell.enabled:
                    cell.enabled = False

    # --- resizing -----------------------------------------------------

    def set_row_count(self, count: int) -> None:
        target = max(1, int(count))
        current = len(self.rows)
        if target == current:
            return
        if target < current:
            del self.rows[target:]
            return
        section_id = self.rows[-1].section_id if self.rows else self._fallback_section_id()
        for i in range(current, target):
            self.rows.append(TheaterRow.build(i, self.column_count, section_id))
        self._apply_walkway_columns()

    def set_column_count(self, count: int) -> None:
        target = max(1, int(count))
        if target == self.column_count:
            return
        for row in self.rows:
            if target > self.column_count:
                row.seats.extend(SeatCell(enabled=not row.is_walkway) for _ in range(target - self.column_count))
            else:
                del row.seats[target:]
        self.column_count = target
        self.walkway_columns = normalize_walkway_columns(self.walkway_columns, target)
        self._apply_walkway_columns()

    # --- walkways -----------------------------------------------------

    def toggle_walkway_row(self, row_id: str) -> bool:
        """Flip a row's walkway flag; returns the new flag."""
        row = self.get_row(row_id)
        if row.is_walkway:
            row.is_walkway = False
            for cell in row.seats:
                cell.enabled = True
            self._apply_walkway_columns()
        else:
            row.is_walkway = True
            if not row.label.strip():
                row.label = WALKWAY_LABEL
            for cell in row.seats:
                cell.enabled = False
        return row.is_walkway

    def toggle_walkway_column(self, column: int) -> bool:
        """
        Flip a column's walkway flag; returns the new flag.
        Un-marking does not re-enable cells that were disabled when the column was marked.
        """
        self._validate_column(column)
        walkway = set(self.walkway_columns)
        if column in walkway:
            walkway.discard(column)
            self.walkway_columns = sorted(walkway)
            return False
        walkway.add(column)
        self.walkway_columns = sorted(walkway)
        self._apply_walkway_columns()
        return True

    # --- cells --------------------------------------------------------

    def toggle_seat(self, row_index: int, column: int) -> bool:
        """Flip one cell. Returns False when the cell is locked by a walkway."""
        if not (0 <= row_index < len(self.rows)):
            raise LayoutError(f"row out of bounds: {row_index}")
        self._validate_column(column)
        row = self.rows[row_index]
        if row.is_walkway or column in self.walkway_columns:
            return False
        cell = row.seats[column]
        cell.enabled = not cell.enabled
        return True

    def toggle_column(self, column: int) -> bool:
        self._validate_column(column)
        if column in self.walkway_columns:
            return False
        seat_rows = [r for r in self.rows if not r.is_walkway]
        any_enabled = any(r.seats[column].enabled for r in seat_rows)
        for r in seat_rows:
            r.seats[column].enabled = not any_enabled
        return True

    # --- rows ---------------------------------------------------------

    def add_row_after(self, index: int, *, walkway: bool = False) -> TheaterRow:
        if self.rows and not (-1 <= index < len(self.rows)):
            raise LayoutError(f"row out of bounds: {index}")
        if 0 <= index < len(self.rows):
            section_id = self.rows[index].section_id
        else:
            section_id = self._fallback_section_id()
        row = TheaterRow.build(index + 1, self.column_count, section_id, walkway=walkway)
        self.rows.insert(index + 1, row)
        self._apply_walkway_columns()
        return row

    def duplicate_row(self, row_id: str) -> TheaterRow:
        idx = self._row_index(row_id)
        src = self.rows[idx]
        dup = src.model_copy(
            update={
                "id": _new_id("row"),
                "seats": [SeatCell(enabled=c.enabled) for c in src.seats],
            }
        )
        self.rows.insert(idx + 1, dup)
        return dup

    def remove_row(self, row_id: str) -> None:
        idx = self._row_index(row_id)
        if len(self.rows) <= 1:
            raise LayoutError("a theater layout needs at least one row")
        del self.rows[idx]

    def move_row(self, row_id: str, direction: int) -> bool:
        idx = self._row_index(row_id)
        target = idx + (1 if direction > 0 else -1)
        if not (0 <= target < len(self.rows)):
            return False
        self.rows.insert(target, self.rows.pop(idx))
        return True

    def update_row(
        self,
        row_id: str,
        *,
        label: Optional[str] = None,
        start_number: Optional[int] = None,
        section_id: Optional[str] = None,
    ) -> TheaterRow:
        row = self.get_row(row_id)
        if label is not None:
            row.label = label
        if start_number is not None:
            if int(start_number) < 0:
                raise LayoutError("start_number must be >= 0")
            row.start_number = int(start_number)
        if section_id is not None:
            if self.get_section(section_id) is None:
                raise LayoutError(f"section not found: {section_id}")
            row.section_id = section_id
        return row

    def seat_number_for_column(self, row_index: int, column: int) -> Optional[int]:
        row = self.rows[row_index]
        if row.is_walkway:
            return None
        walkway = set(self.walkway_columns)
        number = row.start_number
        for c, cell in enumerate(row.seats):
            if not cell.enabled or c in walkway:
                continue
            if c == column:
                return number
            number += 1
        return None

    # --- sections -----------------------------------------------------

    def add_section(self, name: str) -> Section:
        name = (name or "").strip()
        if not name:
            raise LayoutError("section name must be a non-empty string")
        if any(s.name.lower() == name.lower() for s in self.sections):
            raise LayoutError(f"section already exists: {name!r}")
        n = len(self.sections)
        sec = Section(id=f"section-{n + 1}", name=name, color=SEAT_COLORS[n % len(SEAT_COLORS)])
        while self.get_section(sec.id) is not None:
            sec.id = _new_id("section")
        self.sections.append(sec)
        return sec

    def rename_section(self, section_id: str, name: str) -> Section:
        sec = self.get_section(section_id)
        if sec is None:
            raise LayoutError(f"section not found: {section_id}")
        name = (name or "").strip()
        if not name:
            raise LayoutError("section name must be a non-empty string")
        sec.name = name
        return sec


def compile_theater(layout: TheaterLayout) -> SeatPlan:
    sections = {s.id: s for s in layout.sections}
    walkway = set(layout.walkway_columns)

    seats: list[CompiledSeat] = []
    rows: list[RowSummary] = []
    for row_index, row in enumerate(layout.rows):
        section = sections.get(row.section_id)
        section_name = section.name if section else ""
        section_color = section.color if section else "#1e293b"
        active = 0
        if not row.is_walkway:
            number = row.start_number
            for column, cell in enumerate(row.seats):
                if column in walkway or not cell.enabled:
                    continue
                seats.append(
                    CompiledSeat(
                        row_label=row.label,
                        seat_number=number,
                        label=f"{row.label}{number}",
                        section_id=row.section_id,
                        section_name=section_name,
                        section_color=section_color,
                        row_id=row.id,
                        row_index=row_index,
                        column_index=column,
                        seat_type=section_name or None,
                    )
                )
                number += 1
                active += 1
        rows.append(
            RowSummary(
                row_id=row.id,
                row_index=row_index,
                row_label=row.label,
                section_id=row.section_id,
                section_name=section_name,
                section_color=section_color if section else "#475569",
                start_number=row.start_number,
                active_seat_count=active,
                is_walkway=row.is_walkway,
            )
        )

    return SeatPlan(
        seats=seats,
        rows=rows,
        sections=[SectionInfo(id=s.id, name=s.name, color=s.color) for s in layout.sections],
        columns=layout.column_count,
        walkway_columns=list(layout.walkway_columns),
    )
