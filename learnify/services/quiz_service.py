"""
Quiz Service

PURPOSE:
Pick questions for a student, grade answers and keep per-student totals.

SMART SELECTION (default when a student is known):
- ceil(60%) previously wrong and not among the last 10 correct answers
- ceil(30%) never attempted
- the rest recently answered correctly (reinforcement)
- topped up with random unused questions, then shuffled

POINTS:
A correct answer earns points only the first time that question is answered
correctly. student_quiz_scores is always rebuilt from the attempts table, so
the totals can never drift from the attempt history.
"""

import logging
import math
import random
from typing import Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from learnify.core.config import get_settings
from learnify.db.database import fetch_all, fetch_one, parse_timestamp, utcnow_iso

logger = logging.getLogger(__name__)

MAX_QUESTIONS_PER_REQUEST = 20
RECENT_CORRECT_WINDOW = 10
DIFFICULTY_NAMES = {1: "Beginner", 2: "Intermediate", 3: "Advanced"}

PUBLIC_QUESTION_FIELDS = [
    "id", "question_text", "question_category", "difficulty_level",
    "option_a", "option_b", "option_c", "option_d",
]


# ============================================================
# QUESTION SELECTION (pure)
# ============================================================

def sanitize_question(question: dict) -> dict:
    """Strip the answer and explanation before sending a question to a student."""
    return {field: question.get(field) for field in PUBLIC_QUESTION_FIELDS}


def classify_questions(questions: List[dict], attempts: List[dict]) -> Dict[str, List[dict]]:
    """
    Split questions by the student's history.

    Args:
        questions: candidate questions
        attempts: the student's attempts, newest first (question_id, is_correct)
    """
    wrong_ids = {a["question_id"] for a in attempts if not a["is_correct"]}
    correct = [a["question_id"] for a in attempts if a["is_correct"]]
    recent_correct_ids = set(correct[:RECENT_CORRECT_WINDOW])
    attempted_ids = {a["question_id"] for a in attempts}

    return {
        "priority": [q for q in questions if q["id"] in wrong_ids and q["id"] not in recent_correct_ids],
        "new": [q for q in questions if q["id"] not in attempted_ids],
        "reinforcement": [q for q in questions if q["id"] in recent_correct_ids],
    }


def _shuffled(items: List[dict], rng) -> List[dict]:
    items = list(items)
    rng.shuffle(items)
    return items


def smart_select(groups: Dict[str, List[dict]], questions: List[dict], count: int, rng=random) -> List[dict]:
    priority_count = math.ceil(count * 0.6)
    new_count = math.ceil(count * 0.3)
    reinforcement_count = max(count - priority_count - new_count, 0)

    selected = (
        _shuffled(groups["priority"], rng)[:priority_count]
        + _shuffled(groups["new"], rng)[:new_count]
        + _shuffled(groups["reinforcement"], rng)[:reinforcement_count]
    )
    selected = selected[:count]

    if len(selected) < count:
        used = {q["id"] for q in selected}
        remaining = _shuffled([q for q in questions if q["id"] not in used], rng)
        selected += remaining[:count - len(selected)]

    return _shuffled(selected, rng)


def select_questions(
    questions: List[dict],
    count: int,
    attempts: Optional[List[dict]] = None,
    question_type: Optional[str] = None,
    rng=random,
) -> dict:
    """
    Choose up to `count` questions.

    Args:
        questions: active questions (already filtered by difficulty)
        attempts: the student's attempts newest first, or None when no student is known
        question_type: "random", "wrong_only" or None/"smart"

    Returns:
        {"questions", "selection_method", "wrong_questions_count"}; for
        wrong_only with nothing to retry, "questions" is empty.
    """
    if attempts is None:
        return {
            "questions": _shuffled(questions, rng)[:count],
            "selection_method": "random",
            "wrong_questions_count": 0,
        }

    groups = classify_questions(questions, attempts)
    wrong_count = len(groups["priority"])

    if question_type == "wrong_only":
        selected, method = _shuffled(groups["priority"], rng)[:count], "wrong_only"
    elif question_type == "random":
        selected, method = _shuffled(questions, rng)[:count], "random"
    else:
        selected, method = smart_select(groups, questions, count, rng), "smart_learning"

    return {"questions": selected, "selection_method": method, "wrong_questions_count": wrong_count}


# ============================================================
# ATTEMPT SUMMARIES (pure)
# ============================================================

def summarize_attempts(attempts: List[dict]) -> dict:
    """
    Per-question summary of a student's attempts (newest first).
    Status: never_attempted, mastered (any correct) or needs_practice.
    """
    total = len(attempts)
    correct = sum(1 for a in attempts if a["is_correct"])
    latest = attempts[0] if attempts else None
    if total == 0:
        status = "never_attempted"
    elif correct > 0:
        status = "mastered"
    else:
        status = "needs_practice"
    return {
        "total_attempts": total,
        "correct_attempts": correct,
        "accuracy_percentage": round(correct / total * 100) if total else 0,
        "total_points": sum(a["points_earned"] or 0 for a in attempts),
        "latest_attempt": {
            "selected_answer": latest["selected_answer"],
            "is_correct": latest["is_correct"],
            "points_earned": latest["points_earned"],
            "created_at": latest["created_at"],
        } if latest else None,
        "status": status,
    }


def overview_summary(questions_with_attempts: List[dict]) -> dict:
    total = len(questions_with_attempts)
    attempted = sum(1 for q in questions_with_attempts if q["attempt_summary"]["total_attempts"] > 0)
    mastered = sum(1 for q in questions_with_attempts if q["attempt_summary"]["correct_attempts"] > 0)
    return {
        "total_questions": total,
        "attempted_questions": attempted,
        "mastered_questions": mastered,
        "never_attempted": total - attempted,
        "overall_accuracy": round(mastered / attempted * 100) if attempted else 0,
    }


def expected_points(attempts: List[dict], points_value: int) -> Dict[int, int]:
    """
    Points each attempt should carry: only the earliest correct attempt per
    question scores. `attempts` must be ordered oldest first.
    """
    scored_questions = set()
    result = {}
    for attempt in attempts:
        if attempt["is_correct"] and attempt["question_id"] not in scored_questions:
            scored_questions.add(attempt["question_id"])
            result[attempt["id"]] = points_value
        else:
            result[attempt["id"]] = 0
    return result


# ============================================================
# DATABASE OPERATIONS
# ============================================================

def get_active_questions(db: Session, difficulty: Optional[int] = None) -> List[dict]:
    sql = "SELECT * FROM quiz_questions WHERE is_active = :active"
    params = {"active": True}
    if difficulty is not None:
        sql += " AND difficulty_level = :difficulty"
        params["difficulty"] = difficulty
    return fetch_all(db, sql + " ORDER BY difficulty_level ASC, id ASC", params)


def get_student_attempts(db: Session, student_id: str) -> List[dict]:
    """Attempts newest first."""
    return fetch_all(
        db,
        """
        SELECT id, question_id, selected_answer, is_correct, points_earned, created_at
        FROM student_quiz_attempts WHERE student_id = :sid
        ORDER BY created_at DESC, id DESC
        """,
        {"sid": student_id},
    )


def recompute_student_scores(db: Session, student_id: str, student_uuid: Optional[str] = None) -> dict:
    """Rebuild the student's student_quiz_scores row from their attempts."""
    totals = fetch_one(
        db,
        """
        SELECT COUNT(*) AS attempted,
               SUM(CASE WHEN is_correct = :correct THEN 1 ELSE 0 END) AS correct,
               SUM(points_earned) AS points,
               MAX(created_at) AS last_quiz_date
        FROM student_quiz_attempts WHERE student_id = :sid
        """,
        {"sid": student_id, "correct": True},
    )
    attempted = int(totals["attempted"] or 0)
    correct = int(totals["correct"] or 0)
    last_quiz = parse_timestamp(totals["last_quiz_date"])
    values = {
        "sid": student_id,
        "uuid": student_uuid,
        "attempted": attempted,
        "correct": correct,
        "points": int(totals["points"] or 0),
        "accuracy": round(correct / attempted * 100, 2) if attempted else 0,
        "last_quiz_date": last_quiz.isoformat() if last_quiz else None,
        "now": utcnow_iso(),
    }
    db.execute(
        text("""
            INSERT INTO student_quiz_scores
                (student_id, student_uuid, total_questions_attempted, total_correct_answers,
                 total_points, accuracy_percentage, last_quiz_date, updated_at)
            VALUES (:sid, :uuid, :attempted, :correct, :points, :accuracy, :last_quiz_date, :now)
            ON CONFLICT (student_id) DO UPDATE SET
                total_questions_attempted = excluded.total_questions_attempted,
                total_correct_answers = excluded.total_correct_answers,
                total_points = excluded.total_points,
                accuracy_percentage = excluded.accuracy_percentage,
                last_quiz_date = excluded.last_quiz_date,
                updated_at = excluded.updated_at
        """),
        values,
    )
    return get_quiz_scores(db, student_id)


def get_quiz_scores(db: Session, student_id: str) -> Optional[dict]:
    return fetch_one(db, "SELECT * FROM student_quiz_scores WHERE student_id = :sid", {"sid": student_id})


def record_answer(
    db: Session,
    student: dict,
    question: dict,
    selected_answer: str,
    attempt_time_seconds: Optional[int] = None,
) -> dict:
    """
    Grade and store one answer.

    Returns:
        {"attempt", "is_correct", "points_earned"}
    """
    is_correct = selected_answer == question["correct_answer"]
    points = 0
    if is_correct:
        already_scored = fetch_one(
            db,
            """
            SELECT id FROM student_quiz_attempts
            WHERE student_id = :sid AND question_id = :qid AND is_correct = :correct
            LIMIT 1
            """,
            {"sid": student["student_id"], "qid": question["id"], "correct": True},
        )
        if not already_scored:
            points = get_settings().quiz_correct_points

    attempt = fetch_one(
        db,
        """
        INSERT INTO student_quiz_attempts
            (student_id, student_uuid, question_id, selected_answer, is_correct,
             points_earned, attempt_time_seconds, created_at)
        VALUES (:sid, :uuid, :qid, :answer, :is_correct, :points, :seconds, :now)
        RETURNING *
        """,
        {
            "sid": student["student_id"],
            "uuid": student["id"],
            "qid": question["id"],
            "answer": selected_answer,
            "is_correct": is_correct,
            "points": points,
            "seconds": attempt_time_seconds,
            "now": utcnow_iso(),
        },
    )
    recompute_student_scores(db, student["student_id"], student["id"])
    return {"attempt": attempt, "is_correct": is_correct, "points_earned": points}


def fix_quiz_scores(db: Session) -> dict:
    """
    Re-score every student's attempts so only the earliest correct attempt
    per question earns points, then rebuild their totals.
    """
    points_value = get_settings().quiz_correct_points
    students = fetch_all(
        db,
        "SELECT student_id, MAX(student_uuid) AS student_uuid FROM student_quiz_attempts GROUP BY student_id ORDER BY student_id",
    )

    details = []
    total_corrected = 0
    for student in students:
        sid = student["student_id"]
        old = get_quiz_scores(db, sid)
        old_points = int(old["total_points"]) if old else 0

        attempts = fetch_all(
            db,
            """
            SELECT id, question_id, is_correct, points_earned FROM student_quiz_attempts
            WHERE student_id = :sid ORDER BY created_at ASC, id ASC
            """,
            {"sid": sid},
        )
        expected = expected_points(attempts, points_value)
        for attempt in attempts:
            if attempt["points_earned"] != expected[attempt["id"]]:
                db.execute(
                    text("UPDATE student_quiz_attempts SET points_earned = :points WHERE id = :id"),
                    {"points": expected[attempt["id"]], "id": attempt["id"]},
                )

        scores = recompute_student_scores(db, sid, student["student_uuid"])
        new_points = int(scores["total_points"])
        correction = new_points - old_points
        total_corrected += abs(correction)
        details.append({
            "student_id": sid,
            "old_points": old_points,
            "new_points": new_points,
            "points_corrected": correction,
            "unique_questions_answered": sum(1 for p in expected.values() if p > 0),
            "total_attempts": len(attempts),
        })
        if correction:
            logger.info("Fixed quiz score for %s: %s -> %s", sid, old_points, new_points)

    return {
        "students_processed": len(details),
        "total_points_corrected": total_corrected,
        "details": details,
    }
