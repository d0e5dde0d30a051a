"""
Scoring & Leaderboard Service

PURPOSE:
Turn each student's activity into points and rank the class.

HOW IT WORKS:
1. Aggregate activity per student with one grouped query per table
2. Convert activity counts into a points breakdown (values from settings)
3. Sort by total marks with deterministic tiebreaks and number the ranks

POINT RULES:
- Check-ins: per distinct UTC day with at least one check-in
- Reviews: per review
- Projects: once per project type (midterm, final)
- Project notes: per note, capped
- Votes: per vote cast
- Quiz: sum of points_earned over attempts
- Bonus: vote-winner bonuses awarded to the student
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from learnify.core.config import Settings, get_settings
from learnify.db.database import fetch_all, fetch_one, parse_timestamp, utcnow_iso

logger = logging.getLogger(__name__)

BREAKDOWN_KEYS = [
    "check_in_points",
    "review_points",
    "midterm_project_points",
    "final_project_points",
    "project_notes_points",
    "voting_points",
    "quiz_points",
    "bonus_points",
]


# ============================================================
# PURE SCORING
# ============================================================

def count_check_in_days(timestamps: Iterable) -> int:
    """Number of distinct UTC calendar days among the given check-in timestamps."""
    return len({parse_timestamp(ts).date() for ts in timestamps if ts is not None})


def compute_points_breakdown(activity: dict, settings: Optional[Settings] = None) -> Dict[str, int]:
    """
    Points per category for one student.

    Args:
        activity: counts with keys check_in_days, reviews, has_midterm, has_final,
                  notes, votes, quiz_points, bonus_points (missing keys count as 0)
    """
    settings = settings or get_settings()
    notes_points = activity.get("notes", 0) * settings.project_note_points
    return {
        "check_in_points": activity.get("check_in_days", 0) * settings.check_in_points,
        "review_points": activity.get("reviews", 0) * settings.review_points,
        "midterm_project_points": settings.midterm_project_points if activity.get("has_midterm") else 0,
        "final_project_points": settings.final_project_points if activity.get("has_final") else 0,
        "project_notes_points": min(notes_points, settings.project_note_points_cap),
        "voting_points": activity.get("votes", 0) * settings.vote_points,
        "quiz_points": int(activity.get("quiz_points", 0) or 0),
        "bonus_points": int(activity.get("bonus_points", 0) or 0),
    }


def _ranking_key(entry: dict):
    latest = parse_timestamp(entry.get("latest_check_in"))
    return (
        -entry["total_marks"],
        -entry["total_check_ins"],
        # students with a check-in come first, most recent first
        0 if latest else 1,
        -latest.timestamp() if latest else 0,
        entry["full_name"].lower(),
        entry["full_name"],
    )


def rank_entries(entries: List[dict]) -> List[dict]:
    """Sort leaderboard entries and assign 1-based ranks."""
    ranked = sorted(entries, key=_ranking_key)
    for position, entry in enumerate(ranked, start=1):
        entry["rank"] = position
    return ranked


# ============================================================
# DATABASE AGGREGATION
# ============================================================

def _counts_by_student(db: Session, sql: str, params: dict = None) -> Dict[str, int]:
    return {row["student_id"]: int(row["n"] or 0) for row in fetch_all(db, sql, params)}


def collect_activity(db: Session) -> Dict[str, dict]:
    """Activity counts for every student that has any activity, keyed by student code."""
    activity: Dict[str, dict] = defaultdict(dict)

    check_ins = defaultdict(list)
    for row in fetch_all(db, "SELECT student_id, created_at FROM student_check_ins"):
        check_ins[row["student_id"]].append(row["created_at"])
    for student_id, stamps in check_ins.items():
        parsed = [parse_timestamp(ts) for ts in stamps]
        activity[student_id]["check_in_days"] = count_check_in_days(parsed)
        activity[student_id]["check_ins"] = len(parsed)
        activity[student_id]["latest_check_in"] = max(parsed)

    for key, sql in (
        ("reviews", "SELECT student_id, COUNT(*) AS n FROM student_reviews GROUP BY student_id"),
        ("notes", "SELECT student_id, COUNT(*) AS n FROM project_notes GROUP BY student_id"),
        ("votes", "SELECT student_id, COUNT(*) AS n FROM project_votes GROUP BY student_id"),
        ("quiz_points", "SELECT student_id, SUM(points_earned) AS n FROM student_quiz_attempts GROUP BY student_id"),
        ("bonus_points", "SELECT student_id, SUM(bonus_points) AS n FROM vote_bonuses GROUP BY student_id"),
    ):
        for student_id, value in _counts_by_student(db, sql).items():
            activity[student_id][key] = value

    projects = fetch_all(
        db,
        """
        SELECT DISTINCT student_id, project_type FROM submissions
        WHERE submission_type = 'project' AND project_type IS NOT NULL
        """,
    )
    for row in projects:
        activity[row["student_id"]][f"has_{row['project_type']}"] = True

    return activity


def build_entry(student: dict, activity: dict, settings: Optional[Settings] = None) -> dict:
    breakdown = compute_points_breakdown(activity, settings)
    latest = activity.get("latest_check_in")
    return {
        "student_id": student["student_id"],
        "full_name": student["full_name"],
        "total_marks": sum(breakdown.values()),
        "total_check_ins": activity.get("check_ins", 0),
        "latest_check_in": latest.isoformat() if latest else None,
        "points_breakdown": breakdown,
    }


def get_leaderboard_data(db: Session) -> List[dict]:
    """Ranked entries for every student."""
    students = fetch_all(db, "SELECT student_id, full_name FROM students ORDER BY created_at ASC")
    activity = collect_activity(db)
    settings = get_settings()
    entries = [build_entry(s, activity.get(s["student_id"], {}), settings) for s in students]
    return rank_entries(entries)


# ============================================================
# VOTE-WINNER BONUS
# ============================================================

def award_vote_winner_bonus(db: Session, project_type: str) -> Optional[dict]:
    """
    Award the bonus to the most-voted public project of a type.

    Ties go to the earlier submission. Returns None when the bonus was
    already awarded for this type or the type has no votes yet.
    """
    already = fetch_one(db, "SELECT id FROM vote_bonuses WHERE project_type = :pt", {"pt": project_type})
    if already:
        return None

    winner = fetch_one(
        db,
        """
        SELECT s.id AS submission_id, s.student_id, COUNT(v.id) AS vote_count
        FROM submissions s
        JOIN project_votes v ON v.submission_id = s.id
        WHERE s.submission_type = 'project' AND s.project_type = :pt AND s.is_public = :public
        GROUP BY s.id, s.student_id
        ORDER BY vote_count DESC, s.id ASC
        LIMIT 1
        """,
        {"pt": project_type, "public": True},
    )
    if not winner:
        return None

    bonus = get_settings().vote_winner_bonus_points
    db.execute(
        text("""
            INSERT INTO vote_bonuses (project_type, submission_id, student_id, vote_count, bonus_points, awarded_at)
            VALUES (:pt, :submission_id, :student_id, :vote_count, :bonus, :now)
        """),
        {
            "pt": project_type,
            "submission_id": winner["submission_id"],
            "student_id": winner["student_id"],
            "vote_count": winner["vote_count"],
            "bonus": bonus,
            "now": utcnow_iso(),
        },
    )
    logger.info(
        "Vote-winner bonus for %s: submission %s by %s (%s votes, +%s)",
        project_type, winner["submission_id"], winner["student_id"], winner["vote_count"], bonus,
    )
    return {
        "submission_id": winner["submission_id"],
        "student_id": winner["student_id"],
        "bonus_awarded": bonus,
        "vote_count": winner["vote_count"],
        "project_type": project_type,
    }
