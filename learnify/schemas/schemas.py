"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.

Most request fields are Optional on purpose: routes check presence themselves
so clients get the specific error codes (MISSING_STUDENT_ID, MISSING_REVIEW, ...)
instead of a generic validation error.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from enum import Enum

from learnify.utils.validation import is_http_url


# ============================================================
# ENUMS
# ============================================================

class SubmissionType(str, Enum):
    screenshot = "screenshot"
    github_repo = "github_repo"
    project = "project"


class ProjectType(str, Enum):
    midterm = "midterm"
    final = "final"


class LessonStatus(str, Enum):
    normal = "normal"
    skipped = "skipped"
    cancelled = "cancelled"


class AnswerOption(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class QuestionType(str, Enum):
    smart = "smart"
    random = "random"
    wrong_only = "wrong_only"


PROJECT_TYPES = [p.value for p in ProjectType]
LESSON_STATUSES = [s.value for s in LessonStatus]
ANSWER_OPTIONS = [a.value for a in AnswerOption]


# ============================================================
# AUTH SCHEMAS
# ============================================================

class LoginRequest(BaseModel):
    student_id: str = Field(..., min_length=1)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    student_id: str
    full_name: str
    is_admin: bool


# ============================================================
# CHECK-IN / REVIEW / REFLECTION SCHEMAS
# ============================================================

class CheckInRequest(BaseModel):
    student_id: Optional[str] = None
    full_name: Optional[str] = None

class ReviewCreate(BaseModel):
    student_id: Optional[str] = None
    mobile_app_name: Optional[str] = None
    review_text: Optional[str] = None

class ReflectionCreate(BaseModel):
    student_id: Optional[str] = None
    mobile_app_name: Optional[str] = None
    reflection_text: Optional[str] = None


# ============================================================
# SUBMISSION & NOTE SCHEMAS
# ============================================================

class SubmissionCreate(BaseModel):
    student_id: str = Field(..., min_length=1)
    full_name: Optional[str] = None
    submission_type: SubmissionType
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    github_url: Optional[str] = None
    lesson_id: Optional[int] = None
    project_type: Optional[ProjectType] = None
    is_public: bool = False

    @field_validator("github_url")
    @classmethod
    def github_url_must_be_http(cls, value):
        if value is not None and not is_http_url(value):
            raise ValueError("github_url must be a valid http(s) URL")
        return value

class ProjectUpdate(BaseModel):
    student_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    github_url: Optional[str] = None
    is_public: Optional[bool] = None

class ProjectNoteCreate(BaseModel):
    submission_id: int = Field(..., gt=0)
    student_id: str = Field(..., min_length=1)
    note_text: str = Field(..., min_length=1)
    is_private: bool = True

class ProjectNoteUpdate(BaseModel):
    note_text: str = Field(..., min_length=1)


# ============================================================
# VOTING SCHEMAS
# ============================================================

class VoteRequest(BaseModel):
    student_id: Optional[str] = None
    submission_id: Optional[int] = None
    project_type: Optional[str] = None

class RemoveVoteRequest(BaseModel):
    student_id: Optional[str] = None
    project_type: Optional[str] = None


# ============================================================
# QUIZ SCHEMAS
# ============================================================

class AnswerSubmit(BaseModel):
    student_id: Optional[str] = None
    full_name: Optional[str] = None
    question_id: Optional[int] = None
    selected_answer: Optional[str] = None
    attempt_time_seconds: Optional[int] = Field(None, ge=0)


# ============================================================
# LESSON SCHEMAS
# ============================================================

class LessonStatusUpdate(BaseModel):
    status: Optional[str] = None

class LessonUrlUpdate(BaseModel):
    teacher_id: Optional[str] = None
    further_reading_url: Optional[str] = None

class LessonTitleUpdate(BaseModel):
    teacher_id: Optional[str] = None
    name: Optional[str] = None

class LessonDateUpdate(BaseModel):
    teacher_id: Optional[str] = None
    scheduled_date: Optional[str] = None

class PlanItemReorder(BaseModel):
    teacher_id: Optional[str] = None
    item_id: Optional[int] = None
    new_sort_order: Optional[int] = None

class PlanItemMove(BaseModel):
    teacher_id: Optional[str] = None
    target_lesson_id: Optional[int] = None
    new_sort_order: Optional[int] = Field(None, ge=0)

class LessonProgressUpdate(BaseModel):
    teacher_id: Optional[str] = None
    lesson_plan_item_id: Optional[int] = None
    completed: Optional[bool] = None


# ============================================================
# FEEDBACK SCHEMAS
# ============================================================

class FeedbackSubmit(BaseModel):
    semester_feedback: Optional[str] = None
    overall_rating: Optional[int] = None
    liked_topics: List[str] = []
    improvement_topics: List[str] = []
    future_topics: List[str] = []
    additional_comments: Optional[str] = None
