"""
Admin Routes (caller's x-student-id must belong to an admin)

GET /admin/students - All students
GET /admin/status - Caller's admin profile and permissions
DELETE /admin/students/{student_id} - Delete a non-admin student and their data
POST /admin/fix-quiz-scores - Re-score quiz attempts (first correct answer only)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text

from learnify.core.auth import require_admin
from learnify.core.errors import APIError
from learnify.db.database import get_db_session, fetch_all, fetch_one
from learnify.db.mongodb import get_file_store
from learnify.services import submission_service
from learnify.services.quiz_service import fix_quiz_scores

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

ADMIN_PERMISSIONS = ["delete_students", "view_all_students", "manage_lessons", "view_feedback", "fix_quiz_scores"]

# Rows keyed by student code that go with the student
STUDENT_TABLES = [
    "student_check_ins",
    "student_reviews",
    "student_reflections",
    "project_notes",
    "project_votes",
    "student_quiz_attempts",
    "student_quiz_scores",
    "student_feedback",
    "vote_bonuses",
]


@router.get("/students")
async def list_students(admin: dict = Depends(require_admin)):
    with get_db_session() as db:
        students = fetch_all(db, "SELECT * FROM students ORDER BY created_at DESC, student_id ASC")
    return {"success": True, "data": students}


@router.get("/status")
async def admin_status(admin: dict = Depends(require_admin)):
    return {
        "success": True,
        "data": {
            "admin": {
                "student_id": admin["student_id"],
                "full_name": admin["full_name"],
                "is_admin": admin["is_admin"],
            },
            "permissions": ADMIN_PERMISSIONS,
        },
    }


@router.delete("/students/{student_id}")
async def delete_student(student_id: str, admin: dict = Depends(require_admin), store=Depends(get_file_store)):
    """Delete a student with their check-ins, entries, submissions, votes, quiz data and feedback."""
    if student_id == admin["student_id"]:
        raise APIError(400, "CANNOT_DELETE_SELF", "Cannot delete your own admin account")

    storage_ids = []
    with get_db_session() as db:
        student = fetch_one(
            db, "SELECT student_id, full_name, is_admin FROM students WHERE student_id = :sid", {"sid": student_id}
        )
        if not student:
            raise APIError(404, "STUDENT_NOT_FOUND", "Student not found")
        if student["is_admin"]:
            raise APIError(400, "CANNOT_DELETE_ADMIN", "Cannot delete admin accounts")

        submission_ids = [
            row["id"] for row in fetch_all(db, "SELECT id FROM submissions WHERE student_id = :sid", {"sid": student_id})
        ]
        for submission_id in submission_ids:
            submission = submission_service.get_submission(db, submission_id)
            storage_ids += submission_service.delete_submission(db, submission)

        for table in STUDENT_TABLES:
            db.execute(text(f"DELETE FROM {table} WHERE student_id = :sid"), {"sid": student_id})
        db.execute(text("DELETE FROM students WHERE student_id = :sid"), {"sid": student_id})

    submission_service.discard_files(store, storage_ids)
    logger.info("Admin %s deleted student %s (%s)", admin["student_id"], student_id, student["full_name"])
    return {
        "success": True,
        "message": f"Student {student_id} ({student['full_name']}) has been deleted",
        "data": {"deleted_student": student},
    }


@router.post("/fix-quiz-scores")
async def fix_scores(admin: dict = Depends(require_admin)):
    with get_db_session() as db:
        result = fix_quiz_scores(db)

    if result["students_processed"] == 0:
        message = "No quiz attempts found to fix"
    else:
        message = f"Quiz scores recalculated for {result['students_processed']} students"
    logger.info("Admin %s ran quiz score fix: %s points corrected", admin["student_id"], result["total_points_corrected"])
    return {"success": True, "message": message, "data": result}
