"""
Submission Routes

POST /submissions - Create a submission (multipart, optional files)
GET /submissions - List submissions with filters
GET /submissions/projects/public - Public projects with vote counts
GET /submissions/{submission_id} - Get one submission
PUT /submissions/{submission_id} - Owner edits a project
DELETE /submissions/{submission_id} - Delete a submission and its files
POST /submissions/{submission_id}/files - Owner adds screenshots
DELETE /submissions/{submission_id}/files/{file_id} - Owner removes one file

GET /files/{storage_id} - Download a stored file
"""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import ValidationError

from learnify.core.errors import APIError
from learnify.db.database import get_db_session
from learnify.db.mongodb import FileNotFoundInStore, get_file_store
from learnify.services import submission_service
from learnify.services.student_service import ensure_student
from learnify.schemas.schemas import ProjectType, ProjectUpdate, SubmissionCreate, SubmissionType
from learnify.utils.file_upload import collect_form_files, read_uploads
from learnify.utils.validation import clamp_limit, clamp_offset, is_http_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/submissions", tags=["Submissions"])
files_router = APIRouter(prefix="/files", tags=["Files"])

SUBMISSION_FORM_FIELDS = [
    "student_id", "full_name", "submission_type", "title", "description",
    "github_url", "lesson_id", "project_type", "is_public",
]


def parse_submission_form(form) -> SubmissionCreate:
    """Validate the text fields of a multipart submission form. Blank fields count as missing."""
    fields = {}
    for name in SUBMISSION_FORM_FIELDS:
        value = form.get(name)
        if isinstance(value, str) and value.strip():
            fields[name] = value.strip()
    try:
        return SubmissionCreate(**fields)
    except ValidationError as e:
        raise APIError(
            400, "VALIDATION_ERROR", "Invalid request data",
            details=e.errors(include_url=False, include_context=False),
        )


def check_submission_rules(data: SubmissionCreate, file_count: int) -> None:
    if data.submission_type in (SubmissionType.github_repo, SubmissionType.project) and not data.github_url:
        raise APIError(
            400, "MISSING_GITHUB_URL",
            f"GitHub URL is required for {data.submission_type.value} submission type",
        )
    if data.submission_type == SubmissionType.screenshot and file_count == 0:
        raise APIError(400, "MISSING_FILE", "File is required for screenshot submission type")
    if data.submission_type == SubmissionType.project and not data.project_type:
        raise APIError(400, "MISSING_PROJECT_TYPE", "project_type is required for project submissions")


@router.post("", status_code=201)
async def create_submission(request: Request, store=Depends(get_file_store)):
    """
    Create a submission from a multipart form.

    Files may be sent as `file` or `file_0`..`file_N`. Unknown students are
    registered on the fly.
    """
    form = await request.form()
    data = parse_submission_form(form)
    uploads = await read_uploads(collect_form_files(form))
    check_submission_rules(data, len(uploads))

    stored = submission_service.store_files(store, uploads, data.student_id)
    try:
        with get_db_session() as db:
            student = ensure_student(db, data.student_id, data.full_name)
            submission = submission_service.create_submission(db, student, data, stored)
    except Exception:
        submission_service.discard_files(store, [s["file_path"] for s in stored])
        raise

    return {
        "success": True,
        "message": "Submission created successfully",
        "data": {"submission": submission},
    }


@router.get("")
async def list_submissions(
    student_id: Optional[str] = None,
    submission_type: Optional[SubmissionType] = None,
    lesson_id: Optional[int] = None,
    limit: int = Query(50),
    offset: int = Query(0),
):
    with get_db_session() as db:
        data = submission_service.list_submissions(
            db,
            student_id,
            submission_type.value if submission_type else None,
            lesson_id,
            clamp_limit(limit, 50, 100),
            clamp_offset(offset),
        )
    return {"success": True, "data": data}


@router.get("/projects/public")
async def list_public_projects(project_type: Optional[ProjectType] = None):
    """Public projects (optionally of one type), newest first, with vote counts."""
    with get_db_session() as db:
        projects = submission_service.list_public_projects(db, project_type.value if project_type else None)
    return {"success": True, "data": {"projects": projects, "total": len(projects)}}


@router.get("/{submission_id}")
async def get_submission(submission_id: int):
    with get_db_session() as db:
        submission = submission_service.require_submission(db, submission_id)
    return {"success": True, "data": {"submission": submission}}


@router.put("/{submission_id}")
async def update_project(submission_id: int, update: ProjectUpdate):
    """Owner-only edit of title, description, GitHub URL and visibility."""
    fields = {}
    if update.title is not None:
        if not update.title.strip():
            raise APIError(400, "INVALID_TITLE", "Title cannot be empty")
        fields["title"] = update.title.strip()
    if update.description is not None:
        fields["description"] = update.description.strip() or None
    if update.github_url is not None:
        url = update.github_url.strip()
        if url and not is_http_url(url):
            raise APIError(400, "INVALID_GITHUB_URL", "github_url must be a valid http(s) URL")
        fields["github_url"] = url or None
    if update.is_public is not None:
        fields["is_public"] = update.is_public

    with get_db_session() as db:
        submission = submission_service.require_submission(db, submission_id)
        submission_service.require_owner(submission, update.student_id)
        if not fields:
            raise APIError(400, "NO_UPDATES", "No fields to update")
        updated = submission_service.update_submission(db, submission_id, fields)

    logger.info("Submission %s updated by %s: %s", submission_id, update.student_id, ", ".join(fields))
    return {"success": True, "message": "Project updated successfully", "data": {"submission": updated}}


@router.delete("/{submission_id}")
async def delete_submission(submission_id: int, store=Depends(get_file_store)):
    with get_db_session() as db:
        submission = submission_service.require_submission(db, submission_id)
        storage_ids = submission_service.delete_submission(db, submission)
    submission_service.discard_files(store, storage_ids)
    return {"success": True, "message": "Submission deleted successfully"}


@router.post("/{submission_id}/files", status_code=201)
async def add_submission_files(submission_id: int, request: Request, store=Depends(get_file_store)):
    """Attach more screenshots to an existing submission (owner only)."""
    form = await request.form()
    student_id = form.get("student_id")
    student_id = student_id.strip() if isinstance(student_id, str) else None

    with get_db_session() as db:
        submission = submission_service.require_submission(db, submission_id)
    submission_service.require_owner(submission, student_id)

    uploads = await read_uploads(collect_form_files(form))
    if not uploads:
        raise APIError(400, "MISSING_FILE", "At least one file is required")

    stored = submission_service.store_files(store, uploads, student_id)
    try:
        with get_db_session() as db:
            submission_service.attach_files(db, submission_id, stored)
            submission_service.refresh_primary_file(db, submission_id)
            updated = submission_service.get_submission(db, submission_id)
    except Exception:
        submission_service.discard_files(store, [s["file_path"] for s in stored])
        raise

    logger.info("Added %s file(s) to submission %s", len(stored), submission_id)
    return {"success": True, "message": "Files added successfully", "data": {"submission": updated}}


@router.delete("/{submission_id}/files/{file_id}")
async def delete_submission_file(
    submission_id: int,
    file_id: int,
    student_id: Optional[str] = None,
    store=Depends(get_file_store),
):
    with get_db_session() as db:
        submission = submission_service.require_submission(db, submission_id)
        submission_service.require_owner(submission, student_id)
        storage_id = submission_service.remove_file(db, submission_id, file_id)
        updated = submission_service.get_submission(db, submission_id)
    submission_service.discard_files(store, [storage_id])
    return {"success": True, "message": "File removed successfully", "data": {"submission": updated}}


@files_router.get("/{storage_id}")
async def download_file(storage_id: str, store=Depends(get_file_store)):
    try:
        content, filename, content_type = store.open(storage_id)
    except FileNotFoundInStore:
        raise APIError(404, "FILE_NOT_FOUND", "File not found")
    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(filename)}"},
    )
