import datetime as dt

from pydantic import BaseModel, field_validator
from sqlmodel import SQLModel


class DayUpsert(BaseModel):
    date: str | None = None  # YYYY-MM-DD, defaults to today
    day_type: str | None = None
    notes: str | None = None


class DayExport(BaseModel):
    """One record as it appears in an export file (and is read back on import)."""

    date: dt.date
    day_type: str
    notes: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_iso_date(cls, v):
        # Only YYYY-MM-DD strings; no timestamps or other lax coercions
        if isinstance(v, dt.date):
            return v
        if not isinstance(v, str):
            raise ValueError("date must be a YYYY-MM-DD string")
        return dt.date.fromisoformat(v)

    @field_validator("day_type")
    @classmethod
    def validate_day_type(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("day_type must not be empty")
        return v

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v):
        return v.strip() if v is not None else v


class DayResponse(SQLModel):
    id: int
    date: dt.date
    day_type: str
    notes: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime | None = None


class DayView(BaseModel):
    date: dt.date
    is_today: bool
    entry: DayResponse | None = None
    prev_date: dt.date | None = None
    next_date: dt.date | None = None


class DayTypeStat(BaseModel):
    day_type: str
    count: int


class DayListResponse(BaseModel):
    page: int
    per_page: int
    total_entries: int
    total_pages: int
    days: list[DayResponse]
    day_type_stats: list[DayTypeStat]


class DeleteResponse(BaseModel):
    ok: bool
    deleted: bool


class ImportResponse(BaseModel):
    ok: bool
    count: int
