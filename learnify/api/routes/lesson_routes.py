"""
Lesson Routes

GET /lessons - All lessons (optional status filter, optional plans)
GET /lessons/current - Next upcoming lesson with its plan
GET /lessons/{lesson_id} - One lesson with its plan
PUT /lessons/{lesson_id}/status - Set normal / skipped / cancelled
PUT /lessons/{lesson_id}/url - Further reading URL (teacher only)
PUT /lessons/{lesson_id}/title - Rename (teacher only)
PUT /lessons/{lesson_id}/date - Reschedule (teacher only)
PUT /lessons/{lesson_id}/plan-items/reorder - Reorder plan items (teacher only)
PUT /lessons/plan-items/{item_id}/move - Move an item to another lesson (teacher only)
POST /lessons/{lesson_id}/progress - Class-wide completion of a plan item (teacher only)
"""

import logging
from typing import Optional

from fastapi import APIRouter

from learnify.core.auth import require_teacher
from learnify.core.errors import APIError
from learnify.db.database import get_db_session
from learnify.services import lesson_service
from learnify.schemas.schemas import (
    LESSON_STATUSES, LessonDateUpdate, LessonProgressUpdate, LessonStatusUpdate,
    LessonTitleUpdate, LessonUrlUpdate, PlanItemMove, PlanItemReorder,
)
from learnify.utils.validation import DATE_PATTERN, is_http_url, parse_iso_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lessons", tags=["Lessons"])


@router.get("")
async def list_lessons(status: Optional[str] = None, include_plan: bool = False):
    """Lessons ordered by date then name; include_plan adds each lesson's plan items."""
    with get_db_session() as db:
        lessons = lesson_service.list_lessons(db, status)
        if include_plan:
            lessons = [lesson_service.with_plan(db, lesson) for lesson in lessons]
    return {"success": True, "data": lessons}


@router.get("/current")
async def get_current_lesson():
    with get_db_session() as db:
        lesson = lesson_service.find_current_lesson(db)
        if lesson:
            lesson = lesson_service.with_plan(db, lesson)
    return {"success": True, "data": lesson}


@router.put("/plan-items/{item_id}/move")
async def move_plan_item(item_id: int, request: PlanItemMove):
    if not request.teacher_id or not request.target_lesson_id:
        raise APIError(400, "MISSING_FIELDS", "teacher_id and target_lesson_id are required")
    with get_db_session() as db:
        require_teacher(db, request.teacher_id, "move lesson plan items")
        result = lesson_service.move_plan_item(db, item_id, request.target_lesson_id, request.new_sort_order)
    return {"success": True, "data": result}


@router.get("/{lesson_id}")
async def get_lesson(lesson_id: int):
    with get_db_session() as db:
        lesson = lesson_service.with_plan(db, lesson_service.require_lesson(db, lesson_id))
    return {"success": True, "data": lesson}


@router.put("/{lesson_id}/status")
async def update_status(lesson_id: int, request: LessonStatusUpdate):
    if request.status not in LESSON_STATUSES:
        raise APIError(400, "INVALID_STATUS", "Valid status is required (normal, skipped, cancelled)")
    with get_db_session() as db:
        lesson = lesson_service.update_lesson_fields(db, lesson_id, {"status": request.status})
    logger.info("Lesson %s status -> %s", lesson_id, request.status)
    return {"success": True, "data": lesson}


@router.put("/{lesson_id}/url")
async def update_url(lesson_id: int, request: LessonUrlUpdate):
    """Set the further reading URL; a blank value clears it."""
    if not request.teacher_id:
        raise APIError(400, "MISSING_FIELDS", "teacher_id is required")
    url = (request.further_reading_url or "").strip()
    with get_db_session() as db:
        require_teacher(db, request.teacher_id, "update lesson URLs")
        if url and not is_http_url(url):
            raise APIError(400, "INVALID_URL", "Invalid URL format")
        lesson = lesson_service.update_lesson_fields(db, lesson_id, {"further_reading_url": url or None})
    return {"success": True, "data": lesson}


@router.put("/{lesson_id}/title")
async def update_title(lesson_id: int, request: LessonTitleUpdate):
    name = (request.name or "").strip()
    if not request.teacher_id or not name:
        raise APIError(400, "MISSING_FIELDS", "teacher_id and name are required")
    with get_db_session() as db:
        require_teacher(db, request.teacher_id, "update lesson titles")
        lesson = lesson_service.update_lesson_fields(db, lesson_id, {"name": name})
    return {"success": True, "data": lesson}


@router.put("/{lesson_id}/date")
async def update_date(lesson_id: int, request: LessonDateUpdate):
    if not request.teacher_id or not request.scheduled_date:
        raise APIError(400, "MISSING_FIELDS", "teacher_id and scheduled_date are required")
    with get_db_session() as db:
        require_teacher(db, request.teacher_id, "update lesson dates")
        value = request.scheduled_date.strip()
        if not DATE_PATTERN.match(value) or parse_iso_date(value) is None:
            raise APIError(400, "INVALID_DATE", "Invalid date format. Use YYYY-MM-DD")
        lesson = lesson_service.update_lesson_fields(db, lesson_id, {"scheduled_date": value})
    logger.info("Lesson %s rescheduled to %s", lesson_id, value)
    return {"success": True, "data": lesson}


@router.put("/{lesson_id}/plan-items/reorder")
async def reorder_plan_items(lesson_id: int, request: PlanItemReorder):
    if not request.teacher_id or not request.item_id or request.new_sort_order is None:
        raise APIError(400, "MISSING_FIELDS", "teacher_id, item_id, and new_sort_order are required")
    with get_db_session() as db:
        require_teacher(db, request.teacher_id, "reorder lesson plan items")
        items = lesson_service.reorder_plan_item(db, lesson_id, request.item_id, request.new_sort_order)
    return {"success": True, "data": {"lesson_id": lesson_id, "reordered_items": items}}


@router.post("/{lesson_id}/progress")
async def update_progress(lesson_id: int, request: LessonProgressUpdate):
    """Mark a plan item done (or not done) for the whole class."""
    if not request.teacher_id or not request.lesson_plan_item_id or request.completed is None:
        raise APIError(
            400, "MISSING_FIELDS", "teacher_id, lesson_plan_item_id, and completed (boolean) are required",
        )
    with get_db_session() as db:
        require_teacher(db, request.teacher_id, "update lesson progress")
        progress = lesson_service.set_progress(
            db, lesson_id, request.lesson_plan_item_id, request.completed, request.teacher_id,
        )
    return {"success": True, "data": progress}
