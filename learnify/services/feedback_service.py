"""
Feedback Service - semester feedback storage and analytics.

Topic lists (liked / improvement / future) are stored as JSON text and
decoded on read.
"""

import json
import logging
from collections import Counter
from typing import List, Optional, Tuple

import numpy as np
from sqlalchemy import text
from sqlalchemy.orm import Session

from learnify.db.database import fetch_all, fetch_one, utcnow_iso
from learnify.schemas.schemas import FeedbackSubmit

logger = logging.getLogger(__name__)

TOPIC_FIELDS = ("liked_topics", "improvement_topics", "future_topics")


def get_topics_grouped(db: Session) -> Tuple[dict, int]:
    """Active topics grouped by category, each group in display order."""
    rows = fetch_all(
        db,
        "SELECT * FROM feedback_topics WHERE is_active = :active ORDER BY category ASC, display_order ASC, id ASC",
        {"active": True},
    )
    grouped = {}
    for row in rows:
        grouped.setdefault(row["category"], []).append(row)
    return grouped, len(rows)


def get_feedback(db: Session, student_id: str) -> Optional[dict]:
    return fetch_one(db, "SELECT * FROM student_feedback WHERE student_id = :sid", {"sid": student_id})


def upsert_feedback(db: Session, student: dict, data: FeedbackSubmit) -> Tuple[dict, bool]:
    """
    Store the student's feedback, replacing an earlier submission.

    Returns:
        (feedback row, created) where created is False for an update.
    """
    values = {
        "sid": student["student_id"],
        "uuid": student["id"],
        "semester_feedback": data.semester_feedback,
        "overall_rating": data.overall_rating,
        "liked_topics": json.dumps(data.liked_topics),
        "improvement_topics": json.dumps(data.improvement_topics),
        "future_topics": json.dumps(data.future_topics),
        "additional_comments": data.additional_comments,
        "now": utcnow_iso(),
    }
    existing = get_feedback(db, student["student_id"])
    if existing:
        db.execute(
            text("""
                UPDATE student_feedback SET
                    semester_feedback = :semester_feedback, overall_rating = :overall_rating,
                    liked_topics = :liked_topics, improvement_topics = :improvement_topics,
                    future_topics = :future_topics, additional_comments = :additional_comments,
                    updated_at = :now
                WHERE student_id = :sid
            """),
            values,
        )
    else:
        db.execute(
            text("""
                INSERT INTO student_feedback
                    (student_id, student_uuid, semester_feedback, overall_rating, liked_topics,
                     improvement_topics, future_topics, additional_comments, created_at, updated_at)
                VALUES (:sid, :uuid, :semester_feedback, :overall_rating, :liked_topics,
                        :improvement_topics, :future_topics, :additional_comments, :now, :now)
            """),
            values,
        )
    logger.info("Feedback %s by %s", "updated" if existing else "submitted", student["student_id"])
    return get_feedback(db, student["student_id"]), not existing


def list_feedback(db: Session) -> List[dict]:
    return fetch_all(
        db,
        """
        SELECT f.*, s.full_name
        FROM student_feedback f
        LEFT JOIN students s ON s.student_id = f.student_id
        ORDER BY f.created_at DESC, f.id DESC
        """,
    )


def compute_analytics(feedback: List[dict]) -> dict:
    """
    Summary of all feedback: response count, mean rating, rating histogram
    (1-5) and how often each topic was picked per list.
    """
    ratings = np.array([f["overall_rating"] for f in feedback if f.get("overall_rating")], dtype=int)
    distribution = np.bincount(ratings, minlength=6)[1:6] if ratings.size else np.zeros(5, dtype=int)

    analytics = {
        "total_responses": len(feedback),
        "average_rating": round(float(ratings.mean()), 2) if ratings.size else 0,
        "rating_distribution": {str(score): int(distribution[score - 1]) for score in range(1, 6)},
    }
    for field in TOPIC_FIELDS:
        counts = Counter()
        for entry in feedback:
            topics = entry.get(field) or []
            if isinstance(topics, str):
                topics = json.loads(topics)
            counts.update(topics)
        analytics[f"popular_{field}"] = dict(counts.most_common())
    return analytics
