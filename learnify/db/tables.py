"""
Table definitions (SQLAlchemy Core).

Routes and services query these tables with text() SQL; the metadata here is
only used to create the schema. Timestamps are written by the application as
ISO-8601 UTC strings, JSON columns are stored as text.
"""

import logging

from sqlalchemy import (
    MetaData, Table, Column, Integer, String, Text, Boolean, Float, Date, DateTime,
    ForeignKey, UniqueConstraint, Index,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()


def _timestamps():
    return [
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True)),
    ]


# ============================================================
# STUDENTS & ENGAGEMENT
# ============================================================

students = Table(
    "students", metadata,
    Column("id", String(36), primary_key=True),
    Column("student_id", String(50), nullable=False, unique=True),
    Column("full_name", String(200), nullable=False),
    Column("is_admin", Boolean, nullable=False, default=False),
    *_timestamps(),
)

student_check_ins = Table(
    "student_check_ins", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(50), nullable=False, index=True),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

student_reviews = Table(
    "student_reviews", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(50), nullable=False, index=True),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("mobile_app_name", String(200), nullable=False),
    Column("review_text", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

student_reflections = Table(
    "student_reflections", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(50), nullable=False, index=True),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("mobile_app_name", String(200), nullable=False),
    Column("reflection_text", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


# ============================================================
# SUBMISSIONS, NOTES, VOTES
# ============================================================

submissions = Table(
    "submissions", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(50), nullable=False, index=True),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("submission_type", String(20), nullable=False),
    Column("project_type", String(20)),
    Column("is_public", Boolean, nullable=False, default=False),
    Column("title", String(300), nullable=False),
    Column("description", Text),
    Column("github_url", String(500)),
    Column("lesson_id", Integer),
    Column("file_path", String(100)),
    Column("file_name", String(300)),
    Column("file_size", Integer),
    Column("mime_type", String(100)),
    *_timestamps(),
)

submission_files = Table(
    "submission_files", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("submission_id", Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("file_path", String(100), nullable=False),
    Column("file_name", String(300)),
    Column("file_size", Integer),
    Column("mime_type", String(100)),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

project_notes = Table(
    "project_notes", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("submission_id", Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
    Column("student_id", String(50), nullable=False),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("note_text", Text, nullable=False),
    Column("is_private", Boolean, nullable=False, default=True),
    *_timestamps(),
    Index("ix_project_notes_submission_student", "submission_id", "student_id"),
)

project_votes = Table(
    "project_votes", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(50), nullable=False),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("submission_id", Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
    Column("project_type", String(20), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("student_id", "project_type", name="uq_project_votes_student_type"),
)

vote_bonuses = Table(
    "vote_bonuses", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("project_type", String(20), nullable=False, unique=True),
    Column("submission_id", Integer, nullable=False),
    Column("student_id", String(50), nullable=False),
    Column("vote_count", Integer, nullable=False),
    Column("bonus_points", Integer, nullable=False),
    Column("awarded_at", DateTime(timezone=True), nullable=False),
)


# ============================================================
# QUIZ
# ============================================================

quiz_questions = Table(
    "quiz_questions", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("question_text", Text, nullable=False),
    Column("question_category", String(100)),
    Column("difficulty_level", Integer, nullable=False, default=1),
    Column("option_a", Text, nullable=False),
    Column("option_b", Text, nullable=False),
    Column("option_c", Text, nullable=False),
    Column("option_d", Text, nullable=False),
    Column("correct_answer", String(1), nullable=False),
    Column("explanation", Text),
    Column("is_active", Boolean, nullable=False, default=True),
    *_timestamps(),
)

student_quiz_attempts = Table(
    "student_quiz_attempts", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(50), nullable=False, index=True),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("question_id", Integer, ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False),
    Column("selected_answer", String(1), nullable=False),
    Column("is_correct", Boolean, nullable=False),
    Column("points_earned", Integer, nullable=False, default=0),
    Column("attempt_time_seconds", Integer),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

student_quiz_scores = Table(
    "student_quiz_scores", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(50), nullable=False, unique=True),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("total_questions_attempted", Integer, nullable=False, default=0),
    Column("total_correct_answers", Integer, nullable=False, default=0),
    Column("total_points", Integer, nullable=False, default=0),
    Column("accuracy_percentage", Float, nullable=False, default=0),
    Column("last_quiz_date", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)


# ============================================================
# LESSONS
# ============================================================

lessons = Table(
    "lessons", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("lesson_number", Integer),
    Column("name", String(300), nullable=False),
    Column("description", Text),
    Column("scheduled_date", Date, nullable=False),
    Column("status", String(20), nullable=False, default="normal"),
    Column("topic_name", String(300)),
    Column("icon", String(100)),
    Column("color", String(50)),
    Column("button_color", String(50)),
    Column("further_reading_url", String(500)),
    Column("lesson_content", Text),
    *_timestamps(),
)

lesson_plan_items = Table(
    "lesson_plan_items", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("lesson_id", Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("title", String(500), nullable=False),
    Column("is_required", Boolean, nullable=False, default=True),
    Column("sort_order", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

class_lesson_progress = Table(
    "class_lesson_progress", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("lesson_plan_item_id", Integer, ForeignKey("lesson_plan_items.id", ondelete="CASCADE"),
           nullable=False, unique=True),
    Column("completed", Boolean, nullable=False, default=False),
    Column("completed_at", DateTime(timezone=True)),
    Column("completed_by_teacher_id", String(50)),
    Column("updated_at", DateTime(timezone=True)),
)


# ============================================================
# FEEDBACK
# ============================================================

feedback_topics = Table(
    "feedback_topics", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("category", String(50), nullable=False),
    Column("topic_name", String(200), nullable=False),
    Column("description", Text),
    Column("display_order", Integer, nullable=False, default=0),
    Column("is_active", Boolean, nullable=False, default=True),
)

student_feedback = Table(
    "student_feedback", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(50), nullable=False, unique=True),
    Column("student_uuid", String(36), ForeignKey("students.id", ondelete="CASCADE")),
    Column("semester_feedback", Text),
    Column("overall_rating", Integer),
    Column("liked_topics", Text),
    Column("improvement_topics", Text),
    Column("future_topics", Text),
    Column("additional_comments", Text),
    *_timestamps(),
)


def init_db(engine: Engine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    metadata.create_all(engine)
    logger.info("Database schema ready (%d tables)", len(metadata.tables))
