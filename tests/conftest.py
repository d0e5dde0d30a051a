"""
Shared fixtures: a throwaway SQLite database, an in-memory file store and
factory helpers for rows the tests need.
"""

import os
import tempfile
import uuid

_DB_DIR = tempfile.mkdtemp(prefix="learnify-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["CHECK_IN_COOLDOWN_HOURS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from learnify.core.config import get_settings
from learnify.db.database import engine, get_db_session, fetch_all, fetch_one, utcnow_iso
from learnify.db.mongodb import FileNotFoundInStore, get_file_store
from learnify.db.tables import metadata
from learnify.main import app
from learnify.services.lesson_service import create_lesson
from learnify.services.student_service import create_student


class MemoryFileStore:
    """Stands in for the GridFS store during tests."""

    def __init__(self):
        self.files = {}

    def save(self, content, filename, content_type, metadata=None):
        storage_id = uuid.uuid4().hex
        self.files[storage_id] = (content, filename, content_type)
        return storage_id

    def open(self, storage_id):
        if storage_id not in self.files:
            raise FileNotFoundInStore(storage_id)
        return self.files[storage_id]

    def delete(self, storage_id):
        if self.files.pop(storage_id, None) is None:
            raise FileNotFoundInStore(storage_id)


@pytest.fixture(autouse=True)
def reset_db():
    metadata.drop_all(engine)
    metadata.create_all(engine)
    yield


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def file_store():
    store = MemoryFileStore()
    app.dependency_overrides[get_file_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_file_store, None)


@pytest.fixture
def client(file_store):
    return TestClient(app)


# ============================================================
# FACTORIES
# ============================================================

@pytest.fixture
def make_student():
    def _make(student_id="S001", full_name="Test Student", is_admin=False):
        with get_db_session() as db:
            return create_student(db, student_id, full_name, is_admin=is_admin)
    return _make


@pytest.fixture
def admin(make_student):
    return make_student("T14004", "Admin User", is_admin=True)


@pytest.fixture
def make_submission():
    def _make(student, submission_type="project", project_type="midterm", is_public=True,
              title="My Project", created_at=None):
        with get_db_session() as db:
            row = fetch_one(
                db,
                """
                INSERT INTO submissions (student_id, student_uuid, submission_type, project_type, is_public,
                                         title, github_url, created_at, updated_at)
                VALUES (:sid, :uuid, :stype, :ptype, :public, :title, :url, :now, :now)
                RETURNING id
                """,
                {
                    "sid": student["student_id"],
                    "uuid": student["id"],
                    "stype": submission_type,
                    "ptype": project_type if submission_type == "project" else None,
                    "public": is_public,
                    "title": title,
                    "url": "https://github.com/example/repo",
                    "now": created_at or utcnow_iso(),
                },
            )
        return row["id"]
    return _make


@pytest.fixture
def make_question():
    def _make(correct_answer="A", difficulty_level=1, is_active=True, question_text="What is Swift?"):
        with get_db_session() as db:
            row = fetch_one(
                db,
                """
                INSERT INTO quiz_questions (question_text, question_category, difficulty_level,
                                            option_a, option_b, option_c, option_d, correct_answer,
                                            explanation, is_active, created_at)
                VALUES (:text, 'Swift', :difficulty, 'A language', 'A bird', 'A car', 'A song',
                        :correct, 'Swift is a programming language', :active, :now)
                RETURNING id
                """,
                {
                    "text": question_text,
                    "difficulty": difficulty_level,
                    "correct": correct_answer,
                    "active": is_active,
                    "now": utcnow_iso(),
                },
            )
        return row["id"]
    return _make


@pytest.fixture
def make_lesson():
    def _make(name="Lesson", scheduled_date="2025-07-01", status="normal", plan_titles=("One", "Two", "Three")):
        lesson = {
            "lesson_number": 1,
            "name": name,
            "scheduled_date": scheduled_date,
            "status": status,
            "lesson_content": ["Intro"],
            "plan": [
                {"title": title, "is_required": True, "sort_order": order}
                for order, title in enumerate(plan_titles)
            ],
        }
        with get_db_session() as db:
            return create_lesson(db, lesson)
    return _make


@pytest.fixture
def make_topic():
    def _make(category="liked", topic_name="SwiftUI", display_order=0, is_active=True):
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO feedback_topics (category, topic_name, display_order, is_active)
                    VALUES (:category, :topic_name, :display_order, :active)
                """),
                {"category": category, "topic_name": topic_name, "display_order": display_order, "active": is_active},
            )
    return _make


@pytest.fixture
def plan_of():
    """Plan items of a lesson (id, title, sort_order) in sort order."""
    def _plan(lesson_id):
        with get_db_session() as db:
            return fetch_all(
                db,
                "SELECT id, title, sort_order FROM lesson_plan_items WHERE lesson_id = :id ORDER BY sort_order, id",
                {"id": lesson_id},
            )
    return _plan
