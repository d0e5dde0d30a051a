"""
Check-in & Student Routes

POST /auto/check-in - Daily check-in (cooldown enforced)
GET /auto/check-ins/{student_id} - Check-in history
GET /auto/students/{student_id} - Student summary
GET /auto/students - List all students
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Query

from learnify.core.config import get_settings
from learnify.core.errors import APIError
from learnify.db.database import get_db_session, fetch_all, fetch_one, parse_timestamp, row_lock_clause, utcnow
from learnify.services.scoring_service import get_leaderboard_data
from learnify.services.student_service import require_student, student_summary
from learnify.schemas.schemas import CheckInRequest
from learnify.utils.validation import clamp_limit, clamp_offset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auto", tags=["Check-ins"])


@router.post("/check-in", status_code=201)
async def check_in(request: CheckInRequest):
    """
    Record a check-in for a registered student.

    Points are earned once per UTC day; a second check-in inside the
    cooldown window is rejected with 429.
    """
    if not request.student_id or not request.student_id.strip():
        raise APIError(400, "MISSING_STUDENT_ID", "student_id is required")
    student_id = request.student_id.strip()
    settings = get_settings()

    with get_db_session() as db:
        # locks the student row until commit
        student = fetch_one(
            db, "SELECT * FROM students WHERE student_id = :sid" + row_lock_clause(db), {"sid": student_id}
        )
        if not student:
            raise APIError(
                403, "STUDENT_NOT_REGISTERED",
                f"Student {student_id} is not registered. Please contact your teacher.",
            )

        now = utcnow()
        last = fetch_one(
            db,
            "SELECT created_at FROM student_check_ins WHERE student_id = :sid ORDER BY created_at DESC, id DESC LIMIT 1",
            {"sid": student_id},
        )
        last_at = parse_timestamp(last["created_at"]) if last else None

        if last_at and settings.check_in_cooldown_hours > 0:
            next_available = last_at + timedelta(hours=settings.check_in_cooldown_hours)
            if now < next_available:
                raise APIError(
                    429, "CHECK_IN_COOLDOWN",
                    f"You can check in again after {next_available.isoformat()}",
                    next_available=next_available.isoformat(),
                )

        first_today = not last_at or last_at.date() != now.date()
        row = fetch_one(
            db,
            """
            INSERT INTO student_check_ins (student_id, student_uuid, created_at)
            VALUES (:sid, :uuid, :now)
            RETURNING id, created_at
            """,
            {"sid": student_id, "uuid": student["id"], "now": now.isoformat()},
        )
        entry = next(e for e in get_leaderboard_data(db) if e["student_id"] == student_id)

    logger.info("Check-in: %s (%s)", student_id, student["full_name"])
    return {
        "success": True,
        "message": f"Welcome, {student['full_name']}! Check-in successful.",
        "data": {
            "check_in_id": row["id"],
            "student_id": student_id,
            "student_name": student["full_name"],
            "checked_in_at": row["created_at"],
            "points_earned": settings.check_in_points if first_today else 0,
            "total_points": entry["total_marks"],
        },
    }


@router.get("/check-ins/{student_id}")
async def get_check_ins(student_id: str, limit: int = Query(10), offset: int = Query(0)):
    """Check-in history for one student, newest first."""
    limit, offset = clamp_limit(limit, 10, 100), clamp_offset(offset)
    with get_db_session() as db:
        student = require_student(db, student_id)
        check_ins = fetch_all(
            db,
            """
            SELECT id, created_at FROM student_check_ins WHERE student_id = :sid
            ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset
            """,
            {"sid": student_id, "limit": limit, "offset": offset},
        )
        total = fetch_one(
            db, "SELECT COUNT(*) AS n FROM student_check_ins WHERE student_id = :sid", {"sid": student_id}
        )

    return {
        "success": True,
        "data": {
            "student": student_summary(student),
            "check_ins": check_ins,
            "total_check_ins": total["n"],
            "showing": {"limit": limit, "offset": offset},
        },
    }


@router.get("/students/{student_id}")
async def get_student(student_id: str):
    with get_db_session() as db:
        student = require_student(db, student_id, status_code=403)
    return {
        "success": True,
        "data": {**student_summary(student), "is_admin": student["is_admin"], "created_at": student["created_at"]},
    }


@router.get("/students")
async def list_students():
    """All students, newest first."""
    with get_db_session() as db:
        students = fetch_all(
            db,
            "SELECT student_id, full_name, is_admin, created_at FROM students ORDER BY created_at DESC, student_id ASC",
        )
    return {"success": True, "data": {"students": students, "total": len(students)}}
