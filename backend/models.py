import datetime as dt

from sqlmodel import Field, SQLModel, UniqueConstraint


class Day(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("date", name="uniq_day_date"),
        {"sqlite_autoincrement": True},  # Ids are never reused
    )

    id: int | None = Field(default=None, primary_key=True)
    date: dt.date = Field(index=True)  # Stored as YYYY-MM-DD
    day_type: str = Field(index=True)  # Freeform label, casing preserved
    notes: str | None = Field(default=None)
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))
    updated_at: dt.datetime | None = Field(default=None)
