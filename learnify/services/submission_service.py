"""
Submission Service

PURPOSE:
Store student submissions (screenshots, GitHub links, projects) and the
files attached to them.

HOW IT WORKS:
1. Uploaded files are validated, then written to the file store (GridFS)
2. Each stored file gets a submission_files row holding its storage id
3. The first file is also kept on the submission row as its primary file
4. Responses carry file_url links served by GET /api/files/{storage_id}
"""

import logging
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from learnify.core.config import get_settings
from learnify.core.errors import APIError
from learnify.db.database import fetch_all, fetch_one, utcnow_iso
from learnify.db.mongodb import FileNotFoundInStore
from learnify.utils.file_upload import UploadedFile

logger = logging.getLogger(__name__)

SUBMISSION_SELECT = """
    SELECT sub.*, st.full_name AS student_name
    FROM submissions sub
    LEFT JOIN students st ON st.student_id = sub.student_id
"""


def file_url(storage_id: Optional[str]) -> Optional[str]:
    if not storage_id:
        return None
    return f"{get_settings().public_base_url.rstrip('/')}/api/files/{storage_id}"


# ============================================================
# FILES
# ============================================================

def store_files(store, uploads: List[UploadedFile], student_id: str) -> List[dict]:
    """Write uploads to the file store; returns one descriptor per stored file."""
    stored = []
    for upload in uploads:
        storage_id = store.save(
            upload.content, upload.filename, upload.content_type, metadata={"student_id": student_id},
        )
        stored.append({
            "file_path": storage_id,
            "file_name": upload.filename,
            "file_size": upload.size,
            "mime_type": upload.content_type,
        })
    return stored


def discard_files(store, storage_ids: List[str]) -> None:
    """Delete stored files; failures are logged and skipped so row deletion can proceed."""
    for storage_id in storage_ids:
        try:
            store.delete(storage_id)
        except FileNotFoundInStore:
            logger.warning("Stored file %s already missing", storage_id)
        except Exception:
            logger.exception("Failed to delete stored file %s", storage_id)


def attach_files(db: Session, submission_id: int, stored: List[dict]) -> None:
    now = utcnow_iso()
    for item in stored:
        db.execute(
            text("""
                INSERT INTO submission_files (submission_id, file_path, file_name, file_size, mime_type, created_at)
                VALUES (:submission_id, :file_path, :file_name, :file_size, :mime_type, :now)
            """),
            {"submission_id": submission_id, "now": now, **item},
        )


def refresh_primary_file(db: Session, submission_id: int) -> None:
    """Point the submission's primary file at its oldest remaining attachment (or clear it)."""
    first = fetch_one(
        db,
        "SELECT * FROM submission_files WHERE submission_id = :id ORDER BY id ASC LIMIT 1",
        {"id": submission_id},
    )
    db.execute(
        text("""
            UPDATE submissions SET file_path = :file_path, file_name = :file_name,
                   file_size = :file_size, mime_type = :mime_type, updated_at = :now
            WHERE id = :id
        """),
        {
            "id": submission_id,
            "file_path": first["file_path"] if first else None,
            "file_name": first["file_name"] if first else None,
            "file_size": first["file_size"] if first else None,
            "mime_type": first["mime_type"] if first else None,
            "now": utcnow_iso(),
        },
    )


def get_submission_files(db: Session, submission_ids: List[int]) -> dict:
    """Attachments grouped by submission id."""
    grouped = {sid: [] for sid in submission_ids}
    if not submission_ids:
        return grouped
    placeholders = ", ".join(f":id{i}" for i in range(len(submission_ids)))
    rows = fetch_all(
        db,
        f"SELECT * FROM submission_files WHERE submission_id IN ({placeholders}) ORDER BY id ASC",
        {f"id{i}": sid for i, sid in enumerate(submission_ids)},
    )
    for row in rows:
        row["file_url"] = file_url(row["file_path"])
        grouped[row["submission_id"]].append(row)
    return grouped


# ============================================================
# SUBMISSIONS
# ============================================================

def serialize_submissions(db: Session, rows: List[dict]) -> List[dict]:
    files = get_submission_files(db, [r["id"] for r in rows])
    result = []
    for row in rows:
        submission = dict(row)
        submission["file_url"] = file_url(row["file_path"])
        submission["files"] = files.get(row["id"], [])
        submission["student_name"] = row.get("student_name") or row["student_id"]
        result.append(submission)
    return result


def get_submission(db: Session, submission_id: int) -> Optional[dict]:
    row = fetch_one(db, SUBMISSION_SELECT + " WHERE sub.id = :id", {"id": submission_id})
    if not row:
        return None
    return serialize_submissions(db, [row])[0]


def require_submission(db: Session, submission_id: int) -> dict:
    submission = get_submission(db, submission_id)
    if not submission:
        raise APIError(404, "SUBMISSION_NOT_FOUND", "Submission not found")
    return submission


def require_owner(submission: dict, student_id: Optional[str]) -> None:
    if not student_id:
        raise APIError(400, "MISSING_STUDENT_ID", "student_id is required")
    if submission["student_id"] != student_id:
        raise APIError(403, "NOT_OWNER", "You can only modify your own submissions")


def create_submission(db: Session, student: dict, data, stored: List[dict]) -> dict:
    """Insert the submission row and its attachments."""
    primary = stored[0] if stored else {}
    now = utcnow_iso()
    row = fetch_one(
        db,
        """
        INSERT INTO submissions
            (student_id, student_uuid, submission_type, project_type, is_public, title, description,
             github_url, lesson_id, file_path, file_name, file_size, mime_type, created_at, updated_at)
        VALUES (:sid, :uuid, :submission_type, :project_type, :is_public, :title, :description,
                :github_url, :lesson_id, :file_path, :file_name, :file_size, :mime_type, :now, :now)
        RETURNING id
        """,
        {
            "sid": student["student_id"],
            "uuid": student["id"],
            "submission_type": data.submission_type.value,
            "project_type": data.project_type.value if data.project_type else None,
            "is_public": data.is_public,
            "title": data.title,
            "description": data.description,
            "github_url": data.github_url,
            "lesson_id": data.lesson_id,
            "file_path": primary.get("file_path"),
            "file_name": primary.get("file_name"),
            "file_size": primary.get("file_size"),
            "mime_type": primary.get("mime_type"),
            "now": now,
        },
    )
    attach_files(db, row["id"], stored)
    logger.info("Submission %s created by %s (%s)", row["id"], student["student_id"], data.submission_type.value)
    return get_submission(db, row["id"])


def list_submissions(db: Session, student_id: Optional[str], submission_type: Optional[str],
                     lesson_id: Optional[int], limit: int, offset: int) -> dict:
    clauses, params = [], {}
    if student_id:
        clauses.append("sub.student_id = :sid")
        params["sid"] = student_id
    if submission_type:
        clauses.append("sub.submission_type = :stype")
        params["stype"] = submission_type
    if lesson_id is not None:
        clauses.append("sub.lesson_id = :lesson_id")
        params["lesson_id"] = lesson_id
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

    rows = fetch_all(
        db,
        SUBMISSION_SELECT + where + " ORDER BY sub.created_at DESC, sub.id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": limit, "offset": offset},
    )
    total = fetch_one(db, "SELECT COUNT(*) AS n FROM submissions sub" + where, params)
    return {
        "submissions": serialize_submissions(db, rows),
        "total": total["n"],
        "showing": {
            "limit": limit,
            "offset": offset,
            "student_id_filter": student_id,
            "submission_type_filter": submission_type,
            "lesson_id_filter": lesson_id,
        },
    }


def list_public_projects(db: Session, project_type: Optional[str] = None) -> List[dict]:
    """Public projects, newest first, each with its vote count."""
    sql = (
        "SELECT sub.*, st.full_name AS student_name, "
        "(SELECT COUNT(*) FROM project_votes v WHERE v.submission_id = sub.id) AS vote_count "
        "FROM submissions sub LEFT JOIN students st ON st.student_id = sub.student_id "
        "WHERE sub.submission_type = 'project' AND sub.is_public = :public"
    )
    params = {"public": True}
    if project_type:
        sql += " AND sub.project_type = :pt"
        params["pt"] = project_type
    rows = fetch_all(db, sql + " ORDER BY sub.created_at DESC, sub.id DESC", params)
    return serialize_submissions(db, rows)


def update_submission(db: Session, submission_id: int, fields: dict) -> dict:
    assignments = ", ".join(f"{name} = :{name}" for name in fields)
    db.execute(
        text(f"UPDATE submissions SET {assignments}, updated_at = :now WHERE id = :id"),
        {**fields, "now": utcnow_iso(), "id": submission_id},
    )
    return get_submission(db, submission_id)


def delete_submission(db: Session, submission: dict) -> List[str]:
    """Delete the submission and its dependent rows; returns storage ids to discard."""
    storage_ids = [f["file_path"] for f in submission["files"]]
    if submission.get("file_path") and submission["file_path"] not in storage_ids:
        storage_ids.append(submission["file_path"])
    params = {"id": submission["id"]}
    for table in ("submission_files", "project_notes", "project_votes", "vote_bonuses"):
        db.execute(text(f"DELETE FROM {table} WHERE submission_id = :id"), params)
    db.execute(text("DELETE FROM submissions WHERE id = :id"), params)
    logger.info("Submission %s deleted", submission["id"])
    return storage_ids


def remove_file(db: Session, submission_id: int, file_id: int) -> str:
    """Remove one attachment row; returns its storage id."""
    row = fetch_one(
        db,
        "SELECT * FROM submission_files WHERE id = :file_id AND submission_id = :submission_id",
        {"file_id": file_id, "submission_id": submission_id},
    )
    if not row:
        raise APIError(404, "FILE_NOT_FOUND", "File not found for this submission")
    db.execute(text("DELETE FROM submission_files WHERE id = :id"), {"id": file_id})
    refresh_primary_file(db, submission_id)
    return row["file_path"]
