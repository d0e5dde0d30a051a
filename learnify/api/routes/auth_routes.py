"""
Authentication Routes

POST /auth/login - Exchange a registered student ID for a JWT token
GET /auth/me - Get the calling student's info
"""

from fastapi import APIRouter, Depends

from learnify.core.auth import create_access_token, get_current_student, get_student_by_code
from learnify.core.errors import APIError
from learnify.db.database import get_db_session
from learnify.schemas.schemas import LoginRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login")
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    student_id = request.student_id.strip()
    with get_db_session() as db:
        student = get_student_by_code(db, student_id)

    if not student:
        raise APIError(403, "STUDENT_NOT_REGISTERED", f"Student {student_id} is not registered")

    token = create_access_token(data={"sub": student["student_id"], "is_admin": student["is_admin"]})

    tokens = TokenResponse(
        access_token=token,
        student_id=student["student_id"],
        full_name=student["full_name"],
        is_admin=student["is_admin"],
    )
    return {"success": True, "data": tokens.model_dump()}


@router.get("/me")
async def get_me(student: dict = Depends(get_current_student)):
    """Get current authenticated student's info."""
    return {
        "success": True,
        "data": {
            "student_id": student["student_id"],
            "full_name": student["full_name"],
            "is_admin": student["is_admin"],
            "uuid": student["id"],
            "created_at": student["created_at"],
        },
    }
