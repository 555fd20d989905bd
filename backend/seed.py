import datetime as dt

from db import create_db_and_tables, create_db_engine
from store import DayStore

SAMPLE_DAYS = [
    ("2024-01-15", "Mending", "Slow morning, long walk by the river"),
    ("2024-01-16", "Finding", "Found the old notebook again"),
    ("2024-01-17", "Exploring", None),
    ("2024-01-19", "Resting", "Quiet day in"),
    ("2024-01-20", "Mending", ""),
]


def seed_database(store: DayStore) -> int:
    """Seed the database with sample days. Returns how many were added."""
    # Check if data already exists
    _, total = store.list_page(1, 1)
    if total:
        print("Database already has data, skipping seed.")
        return 0

    for date, day_type, notes in SAMPLE_DAYS:
        store.upsert_by_date(dt.date.fromisoformat(date), day_type, notes)

    print(f"Seeded database with {len(SAMPLE_DAYS)} sample days.")
    return len(SAMPLE_DAYS)


if __name__ == "__main__":
    engine = create_db_engine()
    create_db_and_tables(engine)
    seed_database(DayStore(engine))
