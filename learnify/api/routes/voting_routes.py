"""
Voting Routes

GET /voting/projects/{project_type}/votes - Public projects with vote counts
GET /voting/student/{student_id}/voting-status - Votes left per project type
POST /voting/vote - Cast a vote
PUT /voting/vote - Change a vote in one step
DELETE /voting/vote - Remove a vote
"""

from fastapi import APIRouter

from learnify.db.database import get_db_session
from learnify.services import voting_service
from learnify.schemas.schemas import RemoveVoteRequest, VoteRequest

router = APIRouter(prefix="/voting", tags=["Voting"])


@router.get("/projects/{project_type}/votes")
async def get_vote_counts(project_type: str):
    voting_service.validate_project_type(project_type)
    with get_db_session() as db:
        projects = voting_service.get_public_vote_counts(db, project_type)
    return {"success": True, "data": {"projects": projects}}


@router.get("/student/{student_id}/voting-status")
async def get_voting_status(student_id: str):
    with get_db_session() as db:
        status = voting_service.get_voting_status(db, student_id)
    return {"success": True, "data": {"voting_status": status}}


@router.post("/vote")
async def cast_vote(vote: VoteRequest):
    created = voting_service.cast_vote(vote.student_id, vote.submission_id, vote.project_type)
    return {
        "success": True,
        "message": f"Vote cast successfully for {vote.project_type} project",
        "data": {"vote_id": created["id"], "vote": created},
    }


@router.put("/vote")
async def change_vote(vote: VoteRequest):
    """Replace the student's vote for this project type (or cast it if none exists)."""
    changed = voting_service.change_vote(vote.student_id, vote.submission_id, vote.project_type)
    return {
        "success": True,
        "message": f"Vote changed successfully for {vote.project_type} project",
        "data": {"vote_id": changed["id"], "vote": changed},
    }


@router.delete("/vote")
async def remove_vote(request: RemoveVoteRequest):
    voting_service.remove_vote(request.student_id, request.project_type)
    return {"success": True, "message": f"Vote removed successfully for {request.project_type} project"}
