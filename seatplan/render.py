from __future__ import annotations

from typing import Optional

from .plan import SeatPlan
from .theater import TheaterLayout, compile_theater


def _cell(text: Optional[str], width: int) -> str:
    if not text:
        return ".".center(width)
    t = str(text)
    if len(t) > width:
        t = t[: max(0, width - 1)] + "…"
    return t.center(width)


def render_ascii(layout: TheaterLayout, *, cell_width: int = 4, plan: Optional[SeatPlan] = None) -> str:
    """
    Grid preview: seat labels for numbered cells, "." for disabled cells, "|" for walkway
    columns and "=" across walkway rows.
    """
    cell_width = max(3, int(cell_width))
    plan = plan or compile_theater(layout)
    labels = {(s.row_index, s.column_index): s.label for s in plan.seats}
    walkway = set(layout.walkway_columns)
    label_width = max([len(r.label) for r in layout.rows] + [3]) + 2

    header = " " * label_width + " ".join(
        ("|" if c in walkway else str(c + 1)).center(cell_width) for c in range(layout.column_count)
    )
    lines = [header]
    for r, row in enumerate(layout.rows):
        if row.is_walkway:
            cells = " ".join("=" * cell_width for _ in range(layout.column_count))
        else:
            cells = " ".join(
                "|".center(cell_width) if c in walkway else _cell(labels.get((r, c)), cell_width)
                for c in range(layout.column_count)
            )
        lines.append(row.label.ljust(label_width) + cells)
    lines.append(f"capacity: {plan.capacity}")
    return "\n".join(lines)
