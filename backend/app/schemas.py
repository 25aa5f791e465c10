from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LayoutCreate(BaseModel):
    name: str
    # Configuration blob keyed by "kind"; an empty blob starts a default theater layout.
    configuration: dict = Field(default_factory=dict)


class ConfigurationUpdate(BaseModel):
    configuration: dict


class PreviewRequest(BaseModel):
    # Compile this blob instead of the stored one (live preview of unsaved edits).
    configuration: Optional[dict] = None
    venue_max_capacity: Optional[int] = Field(default=None, ge=0)


class SeatCreate(BaseModel):
    row: str
    number: int = Field(ge=0)
    label: Optional[str] = None
    type: Optional[str] = None

    @field_validator("row")
    @classmethod
    def _row_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("row is required")
        return v.strip()


class SeatUpdate(SeatCreate):
    pass


class SeatRead(BaseModel):
    id: str
    row: str
    number: int
    label: Optional[str] = None
    type: Optional[str] = None


class HoldCreate(BaseModel):
    reference: str = ""


class SyncResult(BaseModel):
    layout_id: str
    deleted: int
    updated: int
    created: int
    unchanged: int
    capacity: int
