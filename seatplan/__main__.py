from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path

from loguru import logger

from .layouts import LAYOUT_KINDS, compile_layout
from .plan import LayoutError, capacity_warning, duplicate_keys
from .render import render_ascii
from .settings import configure_logging
from .storage import load_layout, maybe_init_layout, save_layout
from .theater import TheaterLayout


DEFAULT_FILE = "seat_layout.json"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--file",
        default=DEFAULT_FILE,
        help=f"Path to layout JSON file (default: {DEFAULT_FILE})",
    )


def _load_theater(path: str) -> TheaterLayout:
    layout = load_layout(path)
    if not isinstance(layout, TheaterLayout):
        raise LayoutError(f"{path} holds a {layout.kind} layout; this command needs a theater layout")
    return layout


def cmd_init(args: argparse.Namespace) -> int:
    layout = maybe_init_layout(args.file, kind=args.kind, rows=args.rows, cols=args.cols, overwrite=args.overwrite)
    print(f"Initialized {layout.kind} layout at {args.file} (capacity {compile_layout(layout).capacity})")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    if isinstance(layout, TheaterLayout):
        print(render_ascii(layout, cell_width=args.width))
        return 0
    plan = compile_layout(layout)
    for s in plan.seats:
        print(f"{s.label:<12} {s.section_name:<16} ({s.x:.1f}, {s.y:.1f})")
    print(f"capacity: {plan.capacity}")
    return 0


def cmd_compile(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    plan = compile_layout(layout)
    print(json.dumps(plan.to_dict(), indent=2))
    dupes = duplicate_keys(plan)
    if dupes:
        logger.warning("colliding seat keys (sync will refuse this layout): {}", ", ".join(dupes))
    warning = capacity_warning(plan, args.venue_max)
    if warning:
        print(f"Warning: {warning}")
        return 1
    return 0


def cmd_resize(args: argparse.Namespace) -> int:
    layout = _load_theater(args.file)
    if args.rows is not None:
        layout.set_row_count(args.rows)
    if args.cols is not None:
        layout.set_column_count(args.cols)
    save_layout(layout, args.file)
    print(f"Resized to {len(layout.rows)} rows x {layout.column_count} cols")
    return 0


def cmd_walkway_row(args: argparse.Namespace) -> int:
    layout = _load_theater(args.file)
    if not (0 <= args.row < len(layout.rows)):
        raise LayoutError(f"row out of bounds: {args.row}")
    flag = layout.toggle_walkway_row(layout.rows[args.row].id)
    save_layout(layout, args.file)
    print(f"Row R{args.row} is {'now' if flag else 'no longer'} a walkway")
    return 0


def cmd_walkway_column(args: argparse.Namespace) -> int:
    layout = _load_theater(args.file)
    flag = layout.toggle_walkway_column(args.col)
    save_layout(layout, args.file)
    print(f"Column C{args.col} is {'now' if flag else 'no longer'} a walkway")
    return 0


def cmd_toggle_seat(args: argparse.Namespace) -> int:
    layout = _load_theater(args.file)
    if not layout.toggle_seat(args.row, args.col):
        print(f"R{args.row}C{args.col} is locked by a walkway")
        return 1
    save_layout(layout, args.file)
    print(f"Toggled R{args.row}C{args.col}")
    return 0


def cmd_export_csv(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    plan = compile_layout(layout)
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["row", "number", "label", "section", "x", "y"])
        for s in plan.seats:
            w.writerow([s.row_label, s.seat_number, s.label, s.section_name, s.x if s.x is not None else "", s.y if s.y is not None else ""])
    print(f"Exported {plan.capacity} seats to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="seatplan", description="Seat layout compiler (CLI).")
    p.add_argument("--log-level", default=None, help="Log level (default: $SEATPLAN_LOG_LEVEL or INFO)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a new layout JSON file")
    _add_common_args(p_init)
    p_init.add_argument("--kind", choices=LAYOUT_KINDS, default="theater")
    p_init.add_argument("--rows", type=int, help="Theater rows")
    p_init.add_argument("--cols", type=int, help="Theater columns")
    p_init.add_argument("--overwrite", action="store_true", help="Overwrite existing layout file")
    p_init.set_defaults(func=cmd_init)

    p_show = sub.add_parser("show", help="Print the layout")
    _add_common_args(p_show)
    p_show.add_argument("--width", type=int, default=4, help="Cell width for display")
    p_show.set_defaults(func=cmd_show)

    p_compile = sub.add_parser("compile", help="Print the compiled seat plan as JSON")
    _add_common_args(p_compile)
    p_compile.add_argument("--venue-max", type=int, default=None, help="Warn when capacity exceeds this")
    p_compile.set_defaults(func=cmd_compile)

    p_resize = sub.add_parser("resize", help="Change theater row/column count")
    _add_common_args(p_resize)
    p_resize.add_argument("--rows", type=int)
    p_resize.add_argument("--cols", type=int)
    p_resize.set_defaults(func=cmd_resize)

    p_wr = sub.add_parser("walkway-row", help="Toggle a theater row as walkway")
    _add_common_args(p_wr)
    p_wr.add_argument("--row", type=int, required=True)
    p_wr.set_defaults(func=cmd_walkway_row)

    p_wc = sub.add_parser("walkway-column", help="Toggle a theater column as walkway")
    _add_common_args(p_wc)
    p_wc.add_argument("--col", type=int, required=True)
    p_wc.set_defaults(func=cmd_walkway_column)

    p_toggle = sub.add_parser("toggle-seat", help="Enable/disable one theater cell")
    _add_common_args(p_toggle)
    p_toggle.add_argument("--row", type=int, required=True)
    p_toggle.add_argument("--col", type=int, required=True)
    p_toggle.set_defaults(func=cmd_toggle_seat)

    p_export = sub.add_parser("export-csv", help="Export compiled seats to a CSV file")
    _add_common_args(p_export)
    p_export.add_argument("--output", required=True)
    p_export.set_defaults(func=cmd_export_csv)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return int(args.func(args))
    except LayoutError as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
