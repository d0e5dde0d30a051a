"""
Student Service - lookups and registration shared by the routes.

Students are keyed two ways:
- id: internal uuid, stored on dependent rows as student_uuid
- student_id: the public code students type in (e.g. T14004)
"""

import logging
import uuid
from typing import Optional, Tuple

from sqlalchemy import text
from sqlalchemy.orm import Session

from learnify.core.auth import get_student_by_code
from learnify.core.errors import APIError
from learnify.db.database import utcnow_iso

logger = logging.getLogger(__name__)


def create_student(db: Session, student_id: str, full_name: str, is_admin: bool = False) -> dict:
    """Insert a student row and return it."""
    now = utcnow_iso()
    db.execute(
        text("""
            INSERT INTO students (id, student_id, full_name, is_admin, created_at, updated_at)
            VALUES (:id, :student_id, :full_name, :is_admin, :now, :now)
        """),
        {
            "id": str(uuid.uuid4()),
            "student_id": student_id,
            "full_name": full_name,
            "is_admin": is_admin,
            "now": now,
        },
    )
    logger.info("Registered student %s (%s)", student_id, full_name)
    return get_student_by_code(db, student_id)


def ensure_student(db: Session, student_id: str, full_name: Optional[str] = None) -> dict:
    """Return the student, creating it on first use (name defaults to the code)."""
    student = get_student_by_code(db, student_id)
    if student:
        return student
    return create_student(db, student_id, full_name or student_id)


def require_student(db: Session, student_id: str, status_code: int = 404) -> dict:
    """Return the student or raise STUDENT_NOT_FOUND with the given status."""
    student = get_student_by_code(db, student_id)
    if not student:
        raise APIError(status_code, "STUDENT_NOT_FOUND", f"Student {student_id} not found")
    return student


def student_summary(student: dict) -> dict:
    return {
        "student_id": student["student_id"],
        "full_name": student["full_name"],
        "uuid": student["id"],
    }


def ensure_admin(db: Session, student_id: str, full_name: str = "Admin User") -> Tuple[dict, bool]:
    """
    Make sure the student exists and is flagged as admin.

    Returns:
        (student, created) where created is False when an existing row was promoted.
    """
    student = get_student_by_code(db, student_id)
    if not student:
        return create_student(db, student_id, full_name, is_admin=True), True
    db.execute(
        text("UPDATE students SET is_admin = :is_admin, updated_at = :now WHERE student_id = :sid"),
        {"is_admin": True, "now": utcnow_iso(), "sid": student_id},
    )
    logger.info("Promoted %s to admin", student_id)
    return get_student_by_code(db, student_id), False
