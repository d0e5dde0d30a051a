"""
Authentication Utility - student identity and JWT handling.

Provides:
- JWT token creation/verification (optional alternative to the header)
- FastAPI dependencies resolving the calling student from either
  `Authorization: Bearer <token>` or the `x-student-id` header
- Admin (teacher) checks for admin routes and lesson edits
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, Header, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from learnify.core.config import get_settings
from learnify.core.errors import APIError
from learnify.db.database import get_db_session, fetch_one

settings = get_settings()

# Bearer token extractor; the header path must still work without a token
bearer_scheme = HTTPBearer(auto_error=False)

STUDENT_COLUMNS = "id, student_id, full_name, is_admin, created_at"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def get_student_by_code(db: Session, student_id: str) -> Optional[dict]:
    """Look up a student row by its public code (e.g. T14004)."""
    return fetch_one(
        db,
        f"SELECT {STUDENT_COLUMNS} FROM students WHERE student_id = :sid",
        {"sid": student_id},
    )


async def get_current_student(
    x_student_id: Optional[str] = Header(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """
    FastAPI dependency - Get the calling student.

    Usage:
        @router.get("/my-feedback")
        async def route(student: dict = Depends(get_current_student)):
            return student
    """
    if credentials:
        payload = decode_token(credentials.credentials)
        if not payload or not payload.get("sub"):
            raise APIError(
                status.HTTP_401_UNAUTHORIZED, "INVALID_TOKEN", "Invalid or expired token",
            )
        student_code = payload["sub"]
    elif x_student_id and x_student_id.strip():
        student_code = x_student_id.strip()
    else:
        raise APIError(
            status.HTTP_401_UNAUTHORIZED, "AUTH_REQUIRED", "Student ID required in x-student-id header",
        )

    with get_db_session() as db:
        student = get_student_by_code(db, student_code)

    if not student:
        raise APIError(status.HTTP_403_FORBIDDEN, "STUDENT_NOT_FOUND", "Student not found")
    return student


async def require_admin(student: dict = Depends(get_current_student)) -> dict:
    """Dependency - Require the caller to be an admin (teacher)."""
    if not student["is_admin"]:
        raise APIError(status.HTTP_403_FORBIDDEN, "ADMIN_REQUIRED", "Admin access required")
    return student


def require_teacher(db: Session, teacher_id: Optional[str], action: str) -> dict:
    """
    Check that the teacher_id sent in a lesson edit belongs to an admin.
    `action` completes the message "Only teachers can ...".
    """
    teacher = get_student_by_code(db, teacher_id) if teacher_id else None
    if not teacher or not teacher["is_admin"]:
        raise APIError(status.HTTP_403_FORBIDDEN, "TEACHER_REQUIRED", f"Only teachers can {action}")
    return teacher
