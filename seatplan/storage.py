from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from .layouts import dump_configuration, new_layout, parse_configuration
from .plan import LayoutError
from .theater import TheaterLayout


def load_layout(path: str | Path):
    p = Path(path)
    if not p.exists():
        raise LayoutError(f"layout file not found: {p}")

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise LayoutError(f"failed to read layout JSON: {e}") from e

    return parse_configuration(data)


def save_layout(layout, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(dump_configuration(layout), indent=2, sort_keys=True) + "\n", encoding="utf-8")


def maybe_init_layout(
    path: str | Path,
    *,
    kind: str = "theater",
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    overwrite: bool = False,
):
    p = Path(path)
    if p.exists() and not overwrite:
        return load_layout(p)

    if kind == "theater" and (rows is not None or cols is not None):
        layout = TheaterLayout.create(rows or 1, cols or 1)
    else:
        layout = new_layout(kind)
    save_layout(layout, p)
    return layout
