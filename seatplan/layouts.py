from __future__ import annotations

from typing import Annotated, Union

from pydantic import Field, TypeAdapter, ValidationError

from .banquet import BanquetLayout, compile_banquet
from .hybrid import HybridLayout, compile_hybrid
from .plan import LayoutError, SeatPlan
from .theater import TheaterLayout, compile_theater


Layout = Annotated[Union[TheaterLayout, BanquetLayout, HybridLayout], Field(discriminator="kind")]

LAYOUT_KINDS = ("theater", "banquet", "hybrid")

_adapter: TypeAdapter = TypeAdapter(Layout)


def new_layout(kind: str) -> Union[TheaterLayout, BanquetLayout, HybridLayout]:
    if kind == "theater":
        return TheaterLayout.default()
    if kind == "banquet":
        return BanquetLayout()
    if kind == "hybrid":
        return HybridLayout()
    raise LayoutError(f"unknown layout kind: {kind!r} (expected one of {', '.join(LAYOUT_KINDS)})")


def parse_configuration(data: dict) -> Union[TheaterLayout, BanquetLayout, HybridLayout]:
    """Load a configuration blob; the "kind" key selects the layout model."""
    if not isinstance(data, dict):
        raise LayoutError("layout configuration must be a JSON object")
    try:
        return _adapter.validate_python(data)
    except ValidationError as e:
        raise LayoutError(f"invalid layout configuration: {e.error_count()} error(s): {e.errors()[0]['msg']}") from e


def dump_configuration(layout: Union[TheaterLayout, BanquetLayout, HybridLayout]) -> dict:
    return layout.model_dump(mode="json")


def compile_layout(layout: Union[TheaterLayout, BanquetLayout, HybridLayout]) -> SeatPlan:
    if isinstance(layout, TheaterLayout):
        return compile_theater(layout)
    if isinstance(layout, BanquetLayout):
        return compile_banquet(layout)
    if isinstance(layout, HybridLayout):
        return compile_hybrid(layout)
    raise LayoutError(f"unsupported layout type: {type(layout).__name__}")
