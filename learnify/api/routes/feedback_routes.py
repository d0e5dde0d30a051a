"""
Feedback Routes

GET /feedback/topics - Active topics grouped by category
POST /feedback/submit - Submit or update own semester feedback
GET /feedback/my-feedback - Own feedback
GET /feedback/all - All feedback (admin only)
GET /feedback/analytics - Feedback summary (admin only)
"""

from fastapi import APIRouter, Depends, Response

from learnify.core.auth import get_current_student, require_admin
from learnify.core.errors import APIError
from learnify.db.database import get_db_session
from learnify.services import feedback_service
from learnify.schemas.schemas import FeedbackSubmit

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.get("/topics")
async def get_topics():
    with get_db_session() as db:
        topics, total = feedback_service.get_topics_grouped(db)
    return {"success": True, "data": {"topics": topics, "total": total}}


@router.post("/submit", status_code=201)
async def submit_feedback(
    data: FeedbackSubmit,
    response: Response,
    student: dict = Depends(get_current_student),
):
    """First submission returns 201; a resubmission replaces it and returns 200."""
    if data.overall_rating is not None and not 1 <= data.overall_rating <= 5:
        raise APIError(400, "INVALID_RATING", "Overall rating must be between 1 and 5")

    with get_db_session() as db:
        feedback, created = feedback_service.upsert_feedback(db, student, data)

    if not created:
        response.status_code = 200
    message = "Feedback submitted successfully" if created else "Feedback updated successfully"
    return {"success": True, "message": message, "data": {"feedback": feedback, "message": message}}


@router.get("/my-feedback")
async def get_my_feedback(student: dict = Depends(get_current_student)):
    with get_db_session() as db:
        feedback = feedback_service.get_feedback(db, student["student_id"])
    return {"success": True, "data": {"feedback": feedback, "has_submitted": feedback is not None}}


@router.get("/all")
async def get_all_feedback(admin: dict = Depends(require_admin)):
    with get_db_session() as db:
        feedback = feedback_service.list_feedback(db)
    return {"success": True, "data": {"feedback": feedback, "total": len(feedback)}}


@router.get("/analytics")
async def get_analytics(admin: dict = Depends(require_admin)):
    with get_db_session() as db:
        feedback = feedback_service.list_feedback(db)
    return {"success": True, "data": feedback_service.compute_analytics(feedback)}
