"""
Review & Reflection Routes

POST /reviews - Submit an app review
GET /reviews/{student_id} - A student's reviews
GET /reviews - All reviews (optional app_name filter)

POST /reflections - Submit a reflection
GET /reflections/{student_id} - A student's reflections
GET /reflections - All reflections (optional app_name filter)
"""

from typing import Optional

from fastapi import APIRouter, Query

from learnify.db.database import get_db_session
from learnify.services.entry_service import REFLECTION, REVIEW, create_entry, list_all_entries, list_student_entries
from learnify.schemas.schemas import ReflectionCreate, ReviewCreate
from learnify.utils.validation import clamp_limit, clamp_offset

review_router = APIRouter(prefix="/reviews", tags=["Reviews"])
reflection_router = APIRouter(prefix="/reflections", tags=["Reflections"])


@review_router.post("", status_code=201)
async def submit_review(review: ReviewCreate):
    with get_db_session() as db:
        data = create_entry(db, REVIEW, review.student_id, review.mobile_app_name, review.review_text)
    return {"success": True, "message": "Review submitted successfully!", "data": data}


@review_router.get("/{student_id}")
async def get_student_reviews(student_id: str, limit: int = Query(10), offset: int = Query(0)):
    with get_db_session() as db:
        data = list_student_entries(db, REVIEW, student_id, clamp_limit(limit, 10, 100), clamp_offset(offset))
    return {"success": True, "data": data}


@review_router.get("")
async def get_all_reviews(limit: int = Query(20), offset: int = Query(0), app_name: Optional[str] = None):
    """All reviews, newest first. app_name is a case-insensitive substring filter."""
    with get_db_session() as db:
        data = list_all_entries(db, REVIEW, clamp_limit(limit, 20, 100), clamp_offset(offset), app_name)
    return {"success": True, "data": data}


@reflection_router.post("", status_code=201)
async def submit_reflection(reflection: ReflectionCreate):
    with get_db_session() as db:
        data = create_entry(
            db, REFLECTION, reflection.student_id, reflection.mobile_app_name, reflection.reflection_text,
        )
    return {"success": True, "message": "Reflection submitted successfully!", "data": data}


@reflection_router.get("/{student_id}")
async def get_student_reflections(student_id: str, limit: int = Query(10), offset: int = Query(0)):
    with get_db_session() as db:
        data = list_student_entries(db, REFLECTION, student_id, clamp_limit(limit, 10, 100), clamp_offset(offset))
    return {"success": True, "data": data}


@reflection_router.get("")
async def get_all_reflections(limit: int = Query(20), offset: int = Query(0), app_name: Optional[str] = None):
    with get_db_session() as db:
        data = list_all_entries(db, REFLECTION, clamp_limit(limit, 20, 100), clamp_offset(offset), app_name)
    return {"success": True, "data": data}
