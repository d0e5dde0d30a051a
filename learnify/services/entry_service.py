"""
Text Entry Service - app reviews and reflections.

Both are short texts about a mobile app written by a student and stored in
tables of the same shape; only the text column and error codes differ.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from learnify.core.errors import APIError
from learnify.db.database import fetch_all, fetch_one, utcnow_iso
from learnify.services.student_service import require_student, student_summary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryKind:
    name: str            # "review" / "reflection"
    table: str
    text_column: str
    missing_text_code: str

    @property
    def plural(self) -> str:
        return f"{self.name}s"


REVIEW = EntryKind("review", "student_reviews", "review_text", "MISSING_REVIEW")
REFLECTION = EntryKind("reflection", "student_reflections", "reflection_text", "MISSING_REFLECTION")


def create_entry(db: Session, kind: EntryKind, student_id: Optional[str],
                 app_name: Optional[str], body: Optional[str]) -> dict:
    if not student_id:
        raise APIError(400, "MISSING_STUDENT_ID", "student_id is required")
    if not app_name or not app_name.strip():
        raise APIError(400, "MISSING_APP_NAME", "mobile_app_name is required")
    if not body or not body.strip():
        raise APIError(400, kind.missing_text_code, f"{kind.text_column} is required and cannot be empty")

    student = require_student(db, student_id)
    row = fetch_one(
        db,
        f"""
        INSERT INTO {kind.table} (student_id, student_uuid, mobile_app_name, {kind.text_column}, created_at)
        VALUES (:sid, :uuid, :app, :body, :now)
        RETURNING *
        """,
        {
            "sid": student["student_id"],
            "uuid": student["id"],
            "app": app_name.strip(),
            "body": body.strip(),
            "now": utcnow_iso(),
        },
    )
    logger.info("%s submitted: %s - %s", kind.name.capitalize(), student_id, row["mobile_app_name"])
    return {
        f"{kind.name}_id": row["id"],
        "student_id": row["student_id"],
        "student_name": student["full_name"],
        "mobile_app_name": row["mobile_app_name"],
        kind.text_column: row[kind.text_column],
        "submitted_at": row["created_at"],
    }


def list_student_entries(db: Session, kind: EntryKind, student_id: str, limit: int, offset: int) -> dict:
    student = require_student(db, student_id)
    entries = fetch_all(
        db,
        f"""
        SELECT id, mobile_app_name, {kind.text_column}, created_at FROM {kind.table}
        WHERE student_id = :sid ORDER BY created_at DESC, id DESC
        LIMIT :limit OFFSET :offset
        """,
        {"sid": student_id, "limit": limit, "offset": offset},
    )
    total = fetch_one(db, f"SELECT COUNT(*) AS n FROM {kind.table} WHERE student_id = :sid", {"sid": student_id})
    return {
        "student": student_summary(student),
        kind.plural: entries,
        f"total_{kind.plural}": total["n"],
        "showing": {"limit": limit, "offset": offset},
    }


def list_all_entries(db: Session, kind: EntryKind, limit: int, offset: int,
                     app_name: Optional[str] = None) -> dict:
    where = ""
    filters = {}
    if app_name:
        where = "WHERE LOWER(e.mobile_app_name) LIKE LOWER(:app)"
        filters["app"] = f"%{app_name}%"

    entries = fetch_all(
        db,
        f"""
        SELECT e.id, e.student_id, e.mobile_app_name, e.{kind.text_column}, e.created_at,
               s.full_name AS student_name
        FROM {kind.table} e
        LEFT JOIN students s ON s.student_id = e.student_id
        {where}
        ORDER BY e.created_at DESC, e.id DESC
        LIMIT :limit OFFSET :offset
        """,
        {**filters, "limit": limit, "offset": offset},
    )
    total = fetch_one(db, f"SELECT COUNT(*) AS n FROM {kind.table} e {where}", filters)
    return {
        kind.plural: entries,
        f"total_{kind.plural}": total["n"],
        "showing": {"limit": limit, "offset": offset, "app_name_filter": app_name or None},
    }
