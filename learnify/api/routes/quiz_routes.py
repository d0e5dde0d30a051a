"""
Quiz Routes

GET /quiz/questions/random - Pick questions (random, wrong_only or smart)
POST /quiz/submit-answer - Grade an answer
GET /quiz/student/{student_id}/scores - Aggregate scores and recent attempts
GET /quiz/student/{student_id}/attempts - Attempt history with question details
GET /quiz/questions/all/{student_id} - Every question with the student's results
GET /quiz/questions/stats - Question counts per difficulty
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query

from learnify.core.errors import APIError
from learnify.db.database import get_db_session, fetch_all, fetch_one, utcnow_iso
from learnify.services import quiz_service
from learnify.services.student_service import create_student, require_student, student_summary
from learnify.core.auth import get_student_by_code
from learnify.schemas.schemas import ANSWER_OPTIONS, AnswerSubmit, QuestionType
from learnify.utils.validation import clamp_limit, clamp_offset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["Quiz"])


@router.get("/questions/random")
async def get_random_questions(
    count: int = Query(5),
    difficulty: Optional[int] = None,
    student_id: Optional[str] = None,
    question_type: Optional[str] = None,
):
    """
    Select quiz questions.

    Without a student the pick is random. With one, question_type chooses
    random, wrong_only (retry mistakes) or the default smart mix; any
    other value falls back to smart.
    """
    count = clamp_limit(count, 5, quiz_service.MAX_QUESTIONS_PER_REQUEST)
    if difficulty is not None and difficulty not in quiz_service.DIFFICULTY_NAMES:
        difficulty = None
    qtype = question_type if question_type in (QuestionType.random.value, QuestionType.wrong_only.value) else None

    with get_db_session() as db:
        questions = quiz_service.get_active_questions(db, difficulty)
        if not questions:
            raise APIError(404, "NO_QUESTIONS_FOUND", "No active quiz questions found")
        attempts = quiz_service.get_student_attempts(db, student_id) if student_id else None

    selection = quiz_service.select_questions(questions, count, attempts, qtype)
    if qtype == "wrong_only" and not selection["questions"]:
        raise APIError(
            404, "NO_WRONG_QUESTIONS",
            "No questions to retry. You have not answered any questions incorrectly yet.",
        )

    return {
        "success": True,
        "data": {
            "questions": [quiz_service.sanitize_question(q) for q in selection["questions"]],
            "total_available": len(questions),
            "selection_method": selection["selection_method"],
            "question_type": qtype or "smart",
            "wrong_questions_count": selection["wrong_questions_count"],
        },
    }


@router.post("/submit-answer", status_code=201)
async def submit_answer(answer: AnswerSubmit):
    """
    Grade an answer. Unknown students are registered when full_name is sent.
    Points are earned only the first time a question is answered correctly.
    """
    if not answer.student_id or not answer.question_id or not answer.selected_answer:
        raise APIError(
            400, "MISSING_REQUIRED_FIELDS", "student_id, question_id, and selected_answer are required",
        )
    selected = answer.selected_answer.strip().upper()
    if selected not in ANSWER_OPTIONS:
        raise APIError(400, "INVALID_ANSWER", "selected_answer must be A, B, C, or D")

    with get_db_session() as db:
        student = get_student_by_code(db, answer.student_id)
        if not student:
            if not answer.full_name or not answer.full_name.strip():
                raise APIError(400, "MISSING_FULL_NAME", "full_name is required for new students")
            student = create_student(db, answer.student_id, answer.full_name.strip())

        question = fetch_one(
            db,
            "SELECT * FROM quiz_questions WHERE id = :id AND is_active = :active",
            {"id": answer.question_id, "active": True},
        )
        if not question:
            raise APIError(404, "QUESTION_NOT_FOUND", "Quiz question not found or inactive")

        result = quiz_service.record_answer(db, student, question, selected, answer.attempt_time_seconds)

    points = result["points_earned"]
    if result["is_correct"]:
        message = f"Correct! You earned {points} points." if points else "Correct! (points already earned for this question)"
    else:
        message = f"Incorrect. The correct answer was {question['correct_answer']}."

    return {
        "success": True,
        "message": message,
        "data": {
            "attempt": result["attempt"],
            "is_correct": result["is_correct"],
            "points_earned": points,
            "correct_answer": question["correct_answer"],
            "explanation": question["explanation"],
        },
    }


@router.get("/student/{student_id}/scores")
async def get_student_scores(student_id: str, limit: int = Query(10), offset: int = Query(0)):
    limit, offset = clamp_limit(limit, 10, 50), clamp_offset(offset)
    with get_db_session() as db:
        student = require_student(db, student_id)
        scores = quiz_service.get_quiz_scores(db, student_id)
        recent = fetch_all(
            db,
            """
            SELECT * FROM student_quiz_attempts WHERE student_id = :sid
            ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset
            """,
            {"sid": student_id, "limit": limit, "offset": offset},
        )
        total = fetch_one(
            db, "SELECT COUNT(*) AS n FROM student_quiz_attempts WHERE student_id = :sid", {"sid": student_id}
        )

    if not scores:
        scores = {
            "student_id": student_id,
            "student_uuid": student["id"],
            "total_questions_attempted": 0,
            "total_correct_answers": 0,
            "total_points": 0,
            "accuracy_percentage": 0,
            "last_quiz_date": None,
        }
    return {
        "success": True,
        "data": {
            "student": student_summary(student),
            "quiz_scores": scores,
            "recent_attempts": recent,
            "total_attempts": total["n"],
            "showing": {"limit": limit, "offset": offset},
        },
    }


@router.get("/student/{student_id}/attempts")
async def get_student_attempts(student_id: str, limit: int = Query(20), offset: int = Query(0)):
    limit, offset = clamp_limit(limit, 20, 100), clamp_offset(offset)
    with get_db_session() as db:
        student = require_student(db, student_id)
        rows = fetch_all(
            db,
            """
            SELECT a.*, q.question_text, q.question_category, q.difficulty_level,
                   q.option_a, q.option_b, q.option_c, q.option_d, q.correct_answer, q.explanation
            FROM student_quiz_attempts a
            LEFT JOIN quiz_questions q ON q.id = a.question_id
            WHERE a.student_id = :sid
            ORDER BY a.created_at DESC, a.id DESC LIMIT :limit OFFSET :offset
            """,
            {"sid": student_id, "limit": limit, "offset": offset},
        )
        total = fetch_one(
            db, "SELECT COUNT(*) AS n FROM student_quiz_attempts WHERE student_id = :sid", {"sid": student_id}
        )

    question_fields = [
        "question_text", "question_category", "difficulty_level", "option_a", "option_b",
        "option_c", "option_d", "correct_answer", "explanation",
    ]
    attempts = []
    for row in rows:
        attempt = {k: v for k, v in row.items() if k not in question_fields}
        attempt["quiz_questions"] = {k: row[k] for k in question_fields}
        attempts.append(attempt)

    return {
        "success": True,
        "data": {
            "student": student_summary(student),
            "attempts": attempts,
            "total_attempts": total["n"],
            "showing": {"limit": limit, "offset": offset},
        },
    }


@router.get("/questions/all/{student_id}")
async def get_all_questions_with_attempts(student_id: str):
    with get_db_session() as db:
        student = require_student(db, student_id)
        questions = quiz_service.get_active_questions(db)
        attempts = quiz_service.get_student_attempts(db, student_id)

    by_question = {}
    for attempt in attempts:
        by_question.setdefault(attempt["question_id"], []).append(attempt)

    result = []
    for question in questions:
        item = {k: question[k] for k in quiz_service.PUBLIC_QUESTION_FIELDS}
        item["correct_answer"] = question["correct_answer"]
        item["explanation"] = question["explanation"]
        item["attempt_summary"] = quiz_service.summarize_attempts(by_question.get(question["id"], []))
        result.append(item)

    return {
        "success": True,
        "data": {
            "student": student_summary(student),
            "questions": result,
            "summary": quiz_service.overview_summary(result),
        },
    }


@router.get("/questions/stats")
async def get_question_stats():
    with get_db_session() as db:
        counts = {
            row["difficulty_level"]: row["n"]
            for row in fetch_all(
                db,
                """
                SELECT difficulty_level, COUNT(*) AS n FROM quiz_questions
                WHERE is_active = :active GROUP BY difficulty_level
                """,
                {"active": True},
            )
        }

    return {
        "success": True,
        "data": {
            "total_questions": sum(counts.values()),
            "difficulty_breakdown": [
                {"difficulty_level": level, "difficulty_name": name, "question_count": counts.get(level, 0)}
                for level, name in quiz_service.DIFFICULTY_NAMES.items()
            ],
            "last_updated": utcnow_iso(),
        },
    }
