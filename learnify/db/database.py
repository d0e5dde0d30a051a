import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from learnify.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create the engine for the given URL.

    PostgreSQL gets a connection pool (5 ready, 10 overflow).
    SQLite (used by tests and local runs) must allow use across threads.
    """
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(url, pool_size=5, max_overflow=10, pool_pre_ping=True, echo=echo)


engine = build_engine(settings.sqlalchemy_url, echo=settings.debug)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.
    Usage:
        with get_db_session() as db:
            db.execute(text("SELECT * FROM students"))
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def test_db_connection() -> bool:
    """
    Test if the database is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session() as db:
            row = db.execute(text("SELECT 1 AS test")).fetchone()
            return row[0] == 1
    except Exception as e:
        logger.warning("Database connection failed: %s", e)
        return False


# SQLite hands booleans back as 0/1 and JSON columns as text
BOOL_COLUMNS = {"is_admin", "is_public", "is_private", "is_correct", "is_active", "is_required", "completed"}
JSON_COLUMNS = {"lesson_content", "liked_topics", "improvement_topics", "future_topics"}


def row_to_dict(columns, row) -> dict:
    data = dict(zip(columns, row))
    for key, value in data.items():
        if value is None:
            continue
        if key in BOOL_COLUMNS:
            data[key] = bool(value)
        elif key in JSON_COLUMNS and isinstance(value, str):
            data[key] = json.loads(value)
    return data


def rows_to_dicts(result) -> list:
    columns = list(result.keys())
    return [row_to_dict(columns, row) for row in result.fetchall()]


def fetch_one(db: Session, sql: str, params: dict = None) -> Optional[dict]:
    """Run a query inside an open session and return the first row as a dict (or None)."""
    result = db.execute(text(sql), params or {})
    row = result.fetchone()
    if row is None:
        return None
    return row_to_dict(list(result.keys()), row)


def fetch_all(db: Session, sql: str, params: dict = None) -> list:
    """Run a query inside an open session and return every row as a dict."""
    return rows_to_dicts(db.execute(text(sql), params or {}))


def row_lock_clause(db: Session) -> str:
    """Row lock suffix for a SELECT: FOR UPDATE on PostgreSQL, nothing on SQLite."""
    return " FOR UPDATE" if db.get_bind().dialect.name == "postgresql" else ""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    """Timestamp in the format stored in every created_at/updated_at column."""
    return utcnow().isoformat()


def parse_timestamp(value) -> Optional[datetime]:
    """
    Normalise a timestamp column value to an aware UTC datetime.
    PostgreSQL returns datetimes; SQLite returns the stored ISO string.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
