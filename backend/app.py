import datetime as dt
import json
import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import TypeAdapter, ValidationError

from db import create_db_and_tables, create_db_engine
from schemas import (
    DayExport,
    DayListResponse,
    DayResponse,
    DayTypeStat,
    DayUpsert,
    DayView,
    DeleteResponse,
    ImportResponse,
)
from store import DayStore, StorageError, total_pages

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def read_per_page() -> int:
    """Listing page size from PER_PAGE, which must be a positive integer."""
    per_page = int(os.getenv("PER_PAGE", "30"))
    if per_page < 1:
        raise RuntimeError(f"PER_PAGE must be at least 1, got {per_page}")
    return per_page


PER_PAGE = read_per_page()
STATS_LIMIT = 10

_import_adapter = TypeAdapter(list[DayExport])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the database engine and day store for the app's lifetime."""
    engine = create_db_engine()
    try:
        create_db_and_tables(engine)
        app.state.store = DayStore(engine)
        logger.info("Database initialized")
        yield
    finally:
        engine.dispose()
        logger.info("Database engine disposed")


# Create FastAPI app
app = FastAPI(title="Auri API", version="1.0.0", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins in development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store(request: Request) -> DayStore:
    return request.app.state.store


def get_today() -> dt.date:
    """Current local calendar date."""
    return dt.date.today()


def parse_date(value: str | None, today: dt.date) -> dt.date:
    if not value:
        return today
    try:
        return dt.date.fromisoformat(value)
    except ValueError as e:
        logger.error(f"Invalid date format: {value}")
        raise HTTPException(
            status_code=400, detail="Invalid date format. Use YYYY-MM-DD"
        ) from e


def build_day_view(store: DayStore, day: dt.date, today: dt.date) -> DayView:
    entry = store.get_by_date(day)
    return DayView(
        date=day,
        is_today=day == today,
        entry=DayResponse.model_validate(entry) if entry else None,
        prev_date=store.get_previous_date(day),
        next_date=store.get_next_date(day, today),
    )


@app.get("/", response_model=DayView)
def get_day(
    date: str = Query(None, description="Day to show (YYYY-MM-DD), defaults to today"),
    store: DayStore = Depends(get_store),
    today: dt.date = Depends(get_today),
):
    """Get the entry for a day along with its navigation neighbours."""
    day = parse_date(date, today)
    logger.info(f"Day request for {day}")

    try:
        return build_day_view(store, day, today)
    except StorageError as e:
        logger.error(f"Error getting day: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/all", response_model=DayListResponse)
def get_all_days(
    page: int = Query(1, description="1-based page number"),
    store: DayStore = Depends(get_store),
):
    """Get one page of days, newest first, with day type stats."""
    page = max(page, 1)
    logger.info(f"All days request, page {page}")

    try:
        days, total = store.list_page(page, PER_PAGE)
        stats = store.tag_frequency(STATS_LIMIT)
    except StorageError as e:
        logger.error(f"Error listing days: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return DayListResponse(
        page=page,
        per_page=PER_PAGE,
        total_entries=total,
        total_pages=total_pages(total, PER_PAGE),
        days=[DayResponse.model_validate(d) for d in days],
        day_type_stats=[DayTypeStat(day_type=t, count=n) for t, n in stats],
    )


@app.post("/day", response_model=DayView)
def save_day(
    request: DayUpsert,
    store: DayStore = Depends(get_store),
    today: dt.date = Depends(get_today),
):
    """Save the day type and notes for a day. A blank day type is ignored."""
    day = parse_date(request.date, today)
    logger.info(f"Save request for {day}")

    try:
        store.upsert_by_date(day, request.day_type, request.notes)
        return build_day_view(store, day, today)
    except StorageError as e:
        logger.error(f"Error saving day: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.delete("/day/{day_id}", response_model=DeleteResponse)
def delete_day(day_id: int, store: DayStore = Depends(get_store)):
    """Delete a specific day by ID."""
    logger.info(f"Delete day request for ID: {day_id}")

    try:
        deleted = store.delete_by_id(day_id)
    except StorageError as e:
        logger.error(f"Error deleting day: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return DeleteResponse(ok=True, deleted=deleted)


@app.get("/export")
def export_days(
    store: DayStore = Depends(get_store),
    today: dt.date = Depends(get_today),
):
    """Download every day as a pretty-printed JSON file."""
    logger.info("Export request")

    try:
        entries = store.export_all()
    except StorageError as e:
        logger.error(f"Error exporting days: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    body = json.dumps([e.model_dump(mode="json") for e in entries], indent=2)
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="auri-export-{today}.json"'},
    )


@app.post("/import", response_model=ImportResponse)
def import_days(
    file: UploadFile | None = File(None),
    store: DayStore = Depends(get_store),
):
    """Replace every day with the contents of an exported JSON file."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    logger.info(f"Import request from {file.filename}")

    try:
        payload = json.loads(file.file.read())
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Invalid import file: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid JSON file") from e

    if not isinstance(payload, list):
        raise HTTPException(status_code=400, detail="Import file must contain a JSON array")

    try:
        records = _import_adapter.validate_python(payload)
    except ValidationError as e:
        logger.error(f"Invalid import entries: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid entry in import file") from e

    try:
        count = store.replace_all(records)
    except StorageError as e:
        logger.error(f"Error importing days: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    logger.info(f"Imported {count} days")
    return ImportResponse(ok=True, count=count)


@app.get("/health")
def health():
    """Service info."""
    return {"message": "Auri API", "docs": "/docs"}
