import logging
import os

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Resolve the database URL from the environment.

    DATABASE_URL wins; otherwise a SQLite file at DATABASE_PATH is used,
    except in production where the SQLite fallback is refused.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        env = os.getenv("ENV", os.getenv("RENDER", "").lower() or "dev")
        # Guard against SQLite fallback in production
        if env in ("prod", "production") or os.getenv("RENDER"):
            raise RuntimeError(
                "DATABASE_URL missing in production; refusing to start with SQLite. "
                "Please configure DATABASE_URL environment variable."
            )
        db_path = os.getenv("DATABASE_PATH", "./auri.db")
        database_url = f"sqlite:///{db_path}"

    # SQLAlchemy needs postgresql:// but some hosts hand out postgres://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def create_db_engine(database_url: str | None = None) -> Engine:
    """Create an engine for the given URL (or the configured one)."""
    database_url = database_url or get_database_url()

    connect_args = {}
    if database_url.startswith("sqlite"):
        # FastAPI runs sync handlers on a thread pool
        connect_args["check_same_thread"] = False

    db_driver = database_url.split(":", 1)[0] if ":" in database_url else "unknown"
    logger.info(f"DB_URL_DRIVER={db_driver}")
    return create_engine(database_url, echo=False, connect_args=connect_args)


def create_db_and_tables(engine: Engine):
    """Create database and tables if they don't exist.
    This is safe to call multiple times - it won't wipe existing data.
    """
    # Register the table metadata before creating it
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
