"""
Project Note Routes

Notes are private jottings a student keeps about a project; each student
only ever sees and edits their own.

GET /project-notes/{submission_id}?student_id= - Caller's notes on a project
POST /project-notes - Create a note
PUT /project-notes/{note_id}?student_id= - Edit own note
DELETE /project-notes/{note_id}?student_id= - Delete own note
"""

import logging
from typing import Optional

from fastapi import APIRouter
from sqlalchemy import text

from learnify.core.errors import APIError
from learnify.db.database import get_db_session, fetch_all, fetch_one, utcnow_iso
from learnify.services.student_service import require_student
from learnify.services.submission_service import require_submission
from learnify.schemas.schemas import ProjectNoteCreate, ProjectNoteUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/project-notes", tags=["Project Notes"])


def _require_student_id(student_id: Optional[str]) -> str:
    if not student_id or not student_id.strip():
        raise APIError(400, "MISSING_STUDENT_ID", "Student ID is required")
    return student_id.strip()


def _require_own_note(db, note_id: int, student_id: str) -> dict:
    note = fetch_one(
        db,
        "SELECT * FROM project_notes WHERE id = :id AND student_id = :sid",
        {"id": note_id, "sid": student_id},
    )
    if not note:
        raise APIError(404, "NOTE_NOT_FOUND", "Note not found or access denied")
    return note


@router.get("/{submission_id}")
async def get_notes(submission_id: int, student_id: Optional[str] = None):
    student_id = _require_student_id(student_id)
    with get_db_session() as db:
        notes = fetch_all(
            db,
            """
            SELECT * FROM project_notes WHERE submission_id = :submission_id AND student_id = :sid
            ORDER BY created_at DESC, id DESC
            """,
            {"submission_id": submission_id, "sid": student_id},
        )
    return {
        "success": True,
        "data": {"notes": notes, "submission_id": submission_id, "student_id": student_id},
    }


@router.post("", status_code=201)
async def create_note(note: ProjectNoteCreate):
    note_text = note.note_text.strip()
    if not note_text:
        raise APIError(400, "MISSING_NOTE_TEXT", "note_text cannot be empty")

    with get_db_session() as db:
        student = require_student(db, note.student_id, status_code=400)
        require_submission(db, note.submission_id)
        now = utcnow_iso()
        created = fetch_one(
            db,
            """
            INSERT INTO project_notes (submission_id, student_id, student_uuid, note_text, is_private,
                                       created_at, updated_at)
            VALUES (:submission_id, :sid, :uuid, :note_text, :is_private, :now, :now)
            RETURNING *
            """,
            {
                "submission_id": note.submission_id,
                "sid": student["student_id"],
                "uuid": student["id"],
                "note_text": note_text,
                "is_private": note.is_private,
                "now": now,
            },
        )

    logger.info("Note %s added to submission %s by %s", created["id"], note.submission_id, note.student_id)
    return {"success": True, "message": "Note created successfully", "data": {"note": created}}


@router.put("/{note_id}")
async def update_note(note_id: int, update: ProjectNoteUpdate, student_id: Optional[str] = None):
    student_id = _require_student_id(student_id)
    note_text = update.note_text.strip()
    if not note_text:
        raise APIError(400, "MISSING_NOTE_TEXT", "note_text cannot be empty")

    with get_db_session() as db:
        _require_own_note(db, note_id, student_id)
        db.execute(
            text("UPDATE project_notes SET note_text = :note_text, updated_at = :now WHERE id = :id"),
            {"note_text": note_text, "now": utcnow_iso(), "id": note_id},
        )
        updated = fetch_one(db, "SELECT * FROM project_notes WHERE id = :id", {"id": note_id})

    return {"success": True, "message": "Note updated successfully", "data": {"note": updated}}


@router.delete("/{note_id}")
async def delete_note(note_id: int, student_id: Optional[str] = None):
    student_id = _require_student_id(student_id)
    with get_db_session() as db:
        _require_own_note(db, note_id, student_id)
        db.execute(text("DELETE FROM project_notes WHERE id = :id"), {"id": note_id})
    return {"success": True, "message": "Note deleted successfully"}
