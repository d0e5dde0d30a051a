"""
Voting Service

Rules for project votes:
- one vote per student per project type (enforced by a unique constraint)
- only public projects of the matching type
- never your own project

Checks run in a fixed order so clients always see the same error for the
same request: missing fields, bad type, unknown project, type mismatch,
non-public, own project, unknown student, already voted.
"""

import logging
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from learnify.core.auth import get_student_by_code
from learnify.core.errors import APIError
from learnify.db.database import get_db_session, fetch_all, fetch_one, utcnow_iso
from learnify.schemas.schemas import PROJECT_TYPES

logger = logging.getLogger(__name__)


def validate_project_type(project_type: Optional[str]) -> str:
    if project_type not in PROJECT_TYPES:
        raise APIError(400, "INVALID_PROJECT_TYPE", 'Invalid project type. Must be "midterm" or "final"')
    return project_type


def validate_vote(db: Session, student_id: Optional[str], submission_id: Optional[int],
                  project_type: Optional[str]) -> dict:
    """Run every vote rule except uniqueness. Returns the voting student."""
    if not student_id or not submission_id or not project_type:
        raise APIError(400, "MISSING_FIELDS", "Missing required fields: student_id, submission_id, project_type")
    validate_project_type(project_type)

    submission = fetch_one(
        db,
        """
        SELECT id, project_type, is_public, student_id FROM submissions
        WHERE id = :id AND submission_type = 'project'
        """,
        {"id": submission_id},
    )
    if not submission:
        raise APIError(404, "PROJECT_NOT_FOUND", "Project submission not found")
    if submission["project_type"] != project_type:
        raise APIError(
            400, "PROJECT_TYPE_MISMATCH",
            f"Project type mismatch. Expected {project_type}, got {submission['project_type']}",
        )
    if not submission["is_public"]:
        raise APIError(400, "PROJECT_NOT_PUBLIC", "Cannot vote for non-public projects")
    if submission["student_id"] == student_id:
        raise APIError(400, "OWN_PROJECT", "Cannot vote for your own project")

    student = get_student_by_code(db, student_id)
    if not student:
        raise APIError(404, "STUDENT_NOT_FOUND", "Student not found")
    return student


def _insert_vote(db: Session, student: dict, submission_id: int, project_type: str) -> dict:
    return fetch_one(
        db,
        """
        INSERT INTO project_votes (student_id, student_uuid, submission_id, project_type, created_at)
        VALUES (:sid, :uuid, :submission_id, :pt, :now)
        RETURNING id, student_id, submission_id, project_type, created_at
        """,
        {
            "sid": student["student_id"],
            "uuid": student["id"],
            "submission_id": submission_id,
            "pt": project_type,
            "now": utcnow_iso(),
        },
    )


def cast_vote(student_id: Optional[str], submission_id: Optional[int], project_type: Optional[str]) -> dict:
    """Record a new vote. 409 when the student already voted for this type."""
    try:
        with get_db_session() as db:
            student = validate_vote(db, student_id, submission_id, project_type)
            vote = _insert_vote(db, student, submission_id, project_type)
    except IntegrityError:
        raise APIError(409, "ALREADY_VOTED", f"You have already voted for a {project_type} project")
    logger.info("Vote cast: %s -> submission %s (%s)", student_id, submission_id, project_type)
    return vote


def remove_vote(student_id: Optional[str], project_type: Optional[str]) -> None:
    if not student_id or not project_type:
        raise APIError(400, "MISSING_FIELDS", "Missing required fields: student_id, project_type")
    validate_project_type(project_type)
    with get_db_session() as db:
        result = db.execute(
            text("DELETE FROM project_votes WHERE student_id = :sid AND project_type = :pt"),
            {"sid": student_id, "pt": project_type},
        )
        if result.rowcount == 0:
            raise APIError(404, "VOTE_NOT_FOUND", f"No vote found for {project_type} projects")
    logger.info("Vote removed: %s (%s)", student_id, project_type)


def change_vote(student_id: Optional[str], submission_id: Optional[int], project_type: Optional[str]) -> dict:
    """Replace the student's vote for a type in one transaction (works with or without a prior vote)."""
    try:
        with get_db_session() as db:
            student = validate_vote(db, student_id, submission_id, project_type)
            db.execute(
                text("DELETE FROM project_votes WHERE student_id = :sid AND project_type = :pt"),
                {"sid": student_id, "pt": project_type},
            )
            vote = _insert_vote(db, student, submission_id, project_type)
    except IntegrityError:
        # a concurrent request voted between our delete and insert
        raise APIError(409, "ALREADY_VOTED", f"You have already voted for a {project_type} project")
    logger.info("Vote changed: %s -> submission %s (%s)", student_id, submission_id, project_type)
    return vote


def get_public_vote_counts(db: Session, project_type: str) -> List[dict]:
    """Public projects of a type with their vote counts, most voted first."""
    rows = fetch_all(
        db,
        """
        SELECT s.id AS submission_id, s.title, st.full_name AS project_author,
               s.student_id, s.created_at AS submission_date, COUNT(v.id) AS vote_count
        FROM submissions s
        LEFT JOIN students st ON st.student_id = s.student_id
        LEFT JOIN project_votes v ON v.submission_id = s.id
        WHERE s.submission_type = 'project' AND s.project_type = :pt AND s.is_public = :public
        GROUP BY s.id, s.title, st.full_name, s.student_id, s.created_at
        ORDER BY vote_count DESC, s.created_at ASC, s.id ASC
        """,
        {"pt": project_type, "public": True},
    )
    for row in rows:
        row["vote_count"] = int(row["vote_count"] or 0)
        row["project_type"] = project_type
    return rows


def get_voting_status(db: Session, student_id: str) -> List[dict]:
    """One entry per project type saying whether the student can still vote."""
    votes = {
        row["project_type"]: row["submission_id"]
        for row in fetch_all(
            db,
            "SELECT project_type, submission_id FROM project_votes WHERE student_id = :sid",
            {"sid": student_id},
        )
    }
    return [
        {
            "project_type": project_type,
            "can_vote": project_type not in votes,
            "voted_for_submission_id": votes.get(project_type),
            "votes_remaining": 0 if project_type in votes else 1,
        }
        for project_type in PROJECT_TYPES
    ]
