"""
Leaderboard Routes

GET /leaderboard - Ranked students, paginated
GET /leaderboard/student/{student_id} - One student's rank with neighbours
POST /calculate-bonus/{project_type} - Award the vote-winner bonus (admin only)
"""

import math

from fastapi import APIRouter, Depends, Query

from learnify.core.auth import require_admin
from learnify.core.errors import APIError
from learnify.db.database import get_db_session
from learnify.services.scoring_service import award_vote_winner_bonus, get_leaderboard_data
from learnify.services.voting_service import validate_project_type
from learnify.utils.validation import clamp_limit, clamp_offset

router = APIRouter(tags=["Leaderboard"])


@router.get("/leaderboard")
async def get_leaderboard(limit: int = Query(50), offset: int = Query(0)):
    limit, offset = clamp_limit(limit, 50, 100), clamp_offset(offset)
    with get_db_session() as db:
        entries = get_leaderboard_data(db)

    return {
        "success": True,
        "data": {
            "leaderboard": entries[offset:offset + limit],
            "total_students": len(entries),
            "showing": {
                "limit": limit,
                "offset": offset,
                "total_pages": math.ceil(len(entries) / limit),
                "current_page": offset // limit + 1,
            },
        },
    }


@router.get("/leaderboard/student/{student_id}")
async def get_student_ranking(student_id: str, context: int = Query(5)):
    """The student's entry plus up to `context` entries above and below."""
    context = clamp_limit(context, 5, 20)
    with get_db_session() as db:
        entries = get_leaderboard_data(db)

    index = next((i for i, e in enumerate(entries) if e["student_id"] == student_id), None)
    if index is None:
        raise APIError(404, "STUDENT_NOT_FOUND", f"Student {student_id} not found in leaderboard")

    return {
        "success": True,
        "data": {
            "student": entries[index],
            "context": entries[max(0, index - context):index + context + 1],
            "total_students": len(entries),
            "student_index": index,
        },
    }


@router.post("/calculate-bonus/{project_type}")
async def calculate_bonus(project_type: str, admin: dict = Depends(require_admin)):
    validate_project_type(project_type)
    with get_db_session() as db:
        result = award_vote_winner_bonus(db, project_type)

    if result is None:
        return {
            "success": True,
            "message": f"No bonus awarded for {project_type} projects (no votes or bonus already awarded)",
            "data": None,
        }
    return {
        "success": True,
        "message": f"Bonus points awarded successfully for {project_type} project",
        "data": result,
    }
