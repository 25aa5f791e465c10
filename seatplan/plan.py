from __future__ import annotations

import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Optional


class LayoutError(Exception):
    pass


_WS = re.compile(r"\s+")


def normalize_row(row: Optional[str]) -> str:
    return _WS.sub("", row or "").upper()


def reconciliation_key(row: Optional[str], number: int) -> str:
    return f"{normalize_row(row)}-{int(number)}"


@dataclass(frozen=True)
class CompiledSeat:
    row_label: str
    seat_number: int
    label: str
    section_id: str = ""
    section_name: str = ""
    section_color: str = ""
    row_id: str = ""
    row_index: int = 0
    column_index: int = 0
    seat_type: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def key(self) -> str:
        return reconciliation_key(self.row_label, self.seat_number)


@dataclass(frozen=True)
class RowSummary:
    row_id: str
    row_index: int
    row_label: str
    section_id: str
    section_name: str
    section_color: str
    start_number: int
    active_seat_count: int
    is_walkway: bool


@dataclass(frozen=True)
class SectionInfo:
    id: str
    name: str
    color: str


@dataclass
class SeatPlan:
    """
    Flat, ordered seat list derived from a layout, plus the summary the editor shows.
    Every layout kind compiles to this shape.
    """

    seats: list[CompiledSeat] = field(default_factory=list)
    rows: list[RowSummary] = field(default_factory=list)
    sections: list[SectionInfo] = field(default_factory=list)
    columns: int = 0
    walkway_columns: list[int] = field(default_factory=list)

    @property
    def capacity(self) -> int:
        return len(self.seats)

    def summary(self) -> dict:
        return {
            "rows": [asdict(r) for r in self.rows],
            "sections": [asdict(s) for s in self.sections],
            "columns": self.columns,
            "capacity": self.capacity,
            "walkway_columns": list(self.walkway_columns),
        }

    def to_dict(self) -> dict:
        return {
            "seats": [asdict(s) for s in self.seats],
            "summary": self.summary(),
        }


def duplicate_keys(plan: SeatPlan) -> list[str]:
    """Reconciliation keys that more than one compiled seat maps to."""
    counts = Counter(s.key for s in plan.seats)
    return sorted(k for k, n in counts.items() if n > 1)


def capacity_warning(plan: SeatPlan, venue_max_capacity: Optional[int]) -> Optional[str]:
    if not venue_max_capacity or venue_max_capacity <= 0:
        return None
    if plan.capacity <= venue_max_capacity:
        return None
    return f"Capacity exceeds venue limit ({venue_max_capacity})."
