"""Date-indexed day record store.

Every journal row lives in the ``day`` table, at most one per calendar date.
The store answers point lookups, neighbour-date navigation, the paginated
listing, tag frequency stats, and the export/import pair. Each operation
runs in its own session; storage failures surface as ``StorageError``.
"""
import datetime as dt
import logging
import math
from collections.abc import Iterable
from contextlib import contextmanager

from sqlalchemy import delete, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from models import Day
from schemas import DayExport

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The underlying database failed while serving a store operation."""


def total_pages(total: int, per_page: int) -> int:
    return math.ceil(total / per_page)


def _clean(value: str | None) -> str | None:
    return value.strip() if value is not None else None


class DayStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _session(self):
        # Uncommitted work is rolled back when the session closes
        try:
            with Session(self.engine) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Storage failure: {str(e)}")
            raise StorageError(str(e)) from e

    @staticmethod
    def _current(session: Session, day: dt.date) -> Day | None:
        return session.exec(
            select(Day).where(Day.date == day).order_by(Day.id.desc())
        ).first()

    def upsert_by_date(
        self, day: dt.date, day_type: str | None, notes: str | None = None
    ) -> Day | None:
        """Insert or overwrite the record for ``day``.

        A blank ``day_type`` means an incomplete submission: nothing is
        written and ``None`` is returned.
        """
        day_type = _clean(day_type)
        notes = _clean(notes)
        if not day_type:
            logger.info(f"Ignoring upsert for {day} with blank day_type")
            return None

        with self._session() as session:
            existing = self._current(session, day)
            if existing:
                existing.day_type = day_type
                existing.notes = notes
                existing.updated_at = dt.datetime.now(dt.UTC)
                record = existing
            else:
                record = Day(date=day, day_type=day_type, notes=notes)
            session.add(record)
            session.commit()
            session.refresh(record)

        logger.info(f"{'Updated' if existing else 'Created'} day {record.id} for {day}")
        return record

    def get_by_date(self, day: dt.date) -> Day | None:
        with self._session() as session:
            return self._current(session, day)

    def get_previous_date(self, day: dt.date) -> dt.date | None:
        with self._session() as session:
            return session.exec(
                select(Day.date).where(Day.date < day).order_by(Day.date.desc()).limit(1)
            ).first()

    def get_next_date(self, day: dt.date, today: dt.date) -> dt.date | None:
        """Closest recorded date after ``day``.

        Paging forward from the past always leads back to ``today``, even
        when today has no entry yet.
        """
        with self._session() as session:
            next_date = session.exec(
                select(Day.date).where(Day.date > day).order_by(Day.date.asc()).limit(1)
            ).first()
        if next_date is not None:
            return next_date
        if day < today:
            return today
        return None

    def list_page(self, page: int, per_page: int) -> tuple[list[Day], int]:
        """One page of records, newest date first, plus the total count."""
        page = max(page, 1)
        with self._session() as session:
            days = session.exec(
                select(Day)
                .order_by(Day.date.desc(), Day.id.desc())
                .offset((page - 1) * per_page)
                .limit(per_page)
            ).all()
            total = session.exec(select(func.count()).select_from(Day)).one()
        return list(days), total

    def tag_frequency(self, limit: int) -> list[tuple[str, int]]:
        count = func.count(Day.id).label("count")
        with self._session() as session:
            rows = session.exec(
                select(Day.day_type, count)
                .group_by(Day.day_type)
                .order_by(count.desc())
                .limit(limit)
            ).all()
        return [(day_type, n) for day_type, n in rows]

    def delete_by_id(self, day_id: int) -> bool:
        """Delete a record; an unknown id is a no-op returning False."""
        with self._session() as session:
            record = session.get(Day, day_id)
            if not record:
                logger.info(f"Day {day_id} not found, nothing to delete")
                return False
            session.delete(record)
            session.commit()

        logger.info(f"Deleted day {day_id}")
        return True

    def export_all(self) -> list[DayExport]:
        with self._session() as session:
            days = session.exec(select(Day).order_by(Day.date.asc(), Day.id.asc())).all()
            return [
                DayExport(date=d.date, day_type=d.day_type, notes=d.notes) for d in days
            ]

    def replace_all(self, records: Iterable[DayExport]) -> int:
        """Wipe every record and load ``records`` in their place.

        Delete and inserts share one transaction, so a failure anywhere
        leaves the previous data intact. When several records share a date
        the last one wins.
        """
        latest: dict[dt.date, DayExport] = {}
        for record in records:
            latest.pop(record.date, None)
            latest[record.date] = record

        with self._session() as session:
            session.exec(delete(Day))
            session.add_all(
                Day(date=r.date, day_type=r.day_type, notes=r.notes)
                for r in latest.values()
            )
            session.commit()

        logger.info(f"Replaced all days with {len(latest)} imported entries")
        return len(latest)
