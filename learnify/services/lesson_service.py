"""
Lesson Service - lesson rows, plan items and class-wide progress.

Plan item sort orders within a lesson are kept as a contiguous 0..n-1
permutation by reorder and move.
"""

import json
import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from learnify.core.errors import APIError
from learnify.db.database import fetch_all, fetch_one, utcnow, utcnow_iso

logger = logging.getLogger(__name__)


def iso_date(value) -> Optional[str]:
    """scheduled_date comes back as a date (PostgreSQL) or a string (SQLite)."""
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def serialize_lesson(row: dict) -> dict:
    lesson = dict(row)
    lesson["scheduled_date"] = iso_date(lesson.get("scheduled_date"))
    if lesson.get("lesson_content") is None:
        lesson["lesson_content"] = []
    return lesson


def get_lesson(db: Session, lesson_id: int) -> Optional[dict]:
    row = fetch_one(db, "SELECT * FROM lessons WHERE id = :id", {"id": lesson_id})
    return serialize_lesson(row) if row else None


def require_lesson(db: Session, lesson_id: int) -> dict:
    lesson = get_lesson(db, lesson_id)
    if not lesson:
        raise APIError(404, "LESSON_NOT_FOUND", "Lesson not found")
    return lesson


def list_lessons(db: Session, status: Optional[str] = None) -> List[dict]:
    sql = "SELECT * FROM lessons"
    params = {}
    if status:
        sql += " WHERE status = :status"
        params["status"] = status
    sql += " ORDER BY scheduled_date ASC, name ASC"
    return [serialize_lesson(r) for r in fetch_all(db, sql, params)]


def get_plan(db: Session, lesson_id: int) -> List[dict]:
    """Plan items for a lesson with class-wide completion, in sort order."""
    rows = fetch_all(
        db,
        """
        SELECT i.id, i.title, i.is_required, p.completed
        FROM lesson_plan_items i
        LEFT JOIN class_lesson_progress p ON p.lesson_plan_item_id = i.id
        WHERE i.lesson_id = :lesson_id
        ORDER BY i.sort_order ASC, i.id ASC
        """,
        {"lesson_id": lesson_id},
    )
    return [
        {"id": r["id"], "title": r["title"], "required": r["is_required"], "completed": bool(r["completed"])}
        for r in rows
    ]


def with_plan(db: Session, lesson: dict) -> dict:
    lesson["plan"] = get_plan(db, lesson["id"])
    return lesson


def find_current_lesson(db: Session, today: Optional[date] = None) -> Optional[dict]:
    """
    First non-skipped lesson dated today or later; otherwise the latest
    non-skipped lesson; otherwise None.
    """
    today = (today or utcnow().date()).isoformat()
    row = fetch_one(
        db,
        """
        SELECT * FROM lessons WHERE scheduled_date >= :today AND status != 'skipped'
        ORDER BY scheduled_date ASC, name ASC LIMIT 1
        """,
        {"today": today},
    )
    if not row:
        row = fetch_one(
            db,
            """
            SELECT * FROM lessons WHERE status != 'skipped'
            ORDER BY scheduled_date DESC, name DESC LIMIT 1
            """,
        )
    return serialize_lesson(row) if row else None


def update_lesson_fields(db: Session, lesson_id: int, fields: dict) -> dict:
    """Update columns on a lesson and return the fresh row (404 when unknown)."""
    require_lesson(db, lesson_id)
    assignments = ", ".join(f"{name} = :{name}" for name in fields)
    db.execute(
        text(f"UPDATE lessons SET {assignments}, updated_at = :now WHERE id = :id"),
        {**fields, "now": utcnow_iso(), "id": lesson_id},
    )
    return get_lesson(db, lesson_id)


def create_lesson(db: Session, lesson: dict) -> int:
    """Insert a lesson with its plan items. Used by the seed script."""
    now = utcnow_iso()
    row = fetch_one(
        db,
        """
        INSERT INTO lessons (lesson_number, name, description, scheduled_date, status, topic_name,
                             icon, color, button_color, further_reading_url, lesson_content,
                             created_at, updated_at)
        VALUES (:lesson_number, :name, :description, :scheduled_date, :status, :topic_name,
                :icon, :color, :button_color, :further_reading_url, :lesson_content, :now, :now)
        RETURNING id
        """,
        {
            "lesson_number": lesson.get("lesson_number"),
            "name": lesson["name"],
            "description": lesson.get("description"),
            "scheduled_date": lesson["scheduled_date"],
            "status": lesson.get("status", "normal"),
            "topic_name": lesson.get("topic_name"),
            "icon": lesson.get("icon"),
            "color": lesson.get("color"),
            "button_color": lesson.get("button_color"),
            "further_reading_url": lesson.get("further_reading_url"),
            "lesson_content": json.dumps(lesson.get("lesson_content") or []),
            "now": now,
        },
    )
    for item in lesson.get("plan", []):
        db.execute(
            text("""
                INSERT INTO lesson_plan_items (lesson_id, title, is_required, sort_order, created_at)
                VALUES (:lesson_id, :title, :is_required, :sort_order, :now)
            """),
            {"lesson_id": row["id"], "now": now, **item},
        )
    return row["id"]


# ============================================================
# PLAN ITEM ORDERING
# ============================================================

def reorder_positions(items: List[dict], item_id: int, new_sort_order: int) -> Dict[int, int]:
    """
    New sort_order for every item whose position changes when `item_id`
    moves to `new_sort_order`. Items between the old and new slot shift by one.
    """
    if new_sort_order < 0 or new_sort_order >= len(items):
        raise APIError(400, "INVALID_SORT_ORDER", "Invalid sort order position")
    old = next(i["sort_order"] for i in items if i["id"] == item_id)
    changes = {}
    if old == new_sort_order:
        return changes
    for item in items:
        position = item["sort_order"]
        if item["id"] == item_id:
            changes[item["id"]] = new_sort_order
        elif old < new_sort_order and old < position <= new_sort_order:
            changes[item["id"]] = position - 1
        elif new_sort_order < old and new_sort_order <= position < old:
            changes[item["id"]] = position + 1
    return changes


def _plan_rows(db: Session, lesson_id: int) -> List[dict]:
    return fetch_all(
        db,
        "SELECT * FROM lesson_plan_items WHERE lesson_id = :lesson_id ORDER BY sort_order ASC, id ASC",
        {"lesson_id": lesson_id},
    )


def _set_sort_order(db: Session, item_id: int, sort_order: int, lesson_id: Optional[int] = None) -> None:
    if lesson_id is None:
        db.execute(text("UPDATE lesson_plan_items SET sort_order = :o WHERE id = :id"),
                   {"o": sort_order, "id": item_id})
    else:
        db.execute(text("UPDATE lesson_plan_items SET sort_order = :o, lesson_id = :l WHERE id = :id"),
                   {"o": sort_order, "l": lesson_id, "id": item_id})


def reorder_plan_item(db: Session, lesson_id: int, item_id: int, new_sort_order: int) -> List[dict]:
    """Move an item within its lesson and return the lesson's plan rows."""
    items = _plan_rows(db, lesson_id)
    if not any(i["id"] == item_id for i in items):
        raise APIError(404, "PLAN_ITEM_NOT_FOUND", "Lesson plan item not found in this lesson")
    for changed_id, order in reorder_positions(items, item_id, new_sort_order).items():
        _set_sort_order(db, changed_id, order)
    return _plan_rows(db, lesson_id)


def compact_positions(db: Session, lesson_id: int) -> None:
    """Renumber a lesson's items 0..n-1 keeping their relative order."""
    for position, item in enumerate(_plan_rows(db, lesson_id)):
        if item["sort_order"] != position:
            _set_sort_order(db, item["id"], position)


def move_plan_item(db: Session, item_id: int, target_lesson_id: int,
                   new_sort_order: Optional[int] = None) -> dict:
    """
    Move an item to a lesson, possibly its own. Without a position it is appended;
    with one, the target's items at or after it shift down.
    Both lessons end up numbered 0..n-1.
    """
    item = fetch_one(db, "SELECT * FROM lesson_plan_items WHERE id = :id", {"id": item_id})
    if not item:
        raise APIError(404, "PLAN_ITEM_NOT_FOUND", "Lesson plan item not found")
    if not get_lesson(db, target_lesson_id):
        raise APIError(404, "LESSON_NOT_FOUND", "Target lesson not found")

    source_lesson_id = item["lesson_id"]
    target_items = [i for i in _plan_rows(db, target_lesson_id) if i["id"] != item_id]

    if new_sort_order is None:
        final_order = len(target_items)
    else:
        final_order = min(new_sort_order, len(target_items))

    # renumber without the moved item, leaving a gap at final_order
    for position, other in enumerate(target_items):
        wanted = position + 1 if position >= final_order else position
        if other["sort_order"] != wanted:
            _set_sort_order(db, other["id"], wanted)

    _set_sort_order(db, item_id, final_order, lesson_id=target_lesson_id)
    compact_positions(db, target_lesson_id)
    if source_lesson_id != target_lesson_id:
        compact_positions(db, source_lesson_id)

    moved = fetch_one(db, "SELECT * FROM lesson_plan_items WHERE id = :id", {"id": item_id})
    logger.info("Moved plan item %s from lesson %s to %s", item_id, source_lesson_id, target_lesson_id)
    return {"moved_item": moved, "source_lesson_id": source_lesson_id, "target_lesson_id": target_lesson_id}


def set_progress(db: Session, lesson_id: int, item_id: int, completed: bool, teacher_id: str) -> dict:
    """Upsert class-wide completion for a plan item of this lesson."""
    belongs = fetch_one(
        db,
        "SELECT id FROM lesson_plan_items WHERE id = :id AND lesson_id = :lesson_id",
        {"id": item_id, "lesson_id": lesson_id},
    )
    if not belongs:
        raise APIError(400, "INVALID_PLAN_ITEM", "Invalid lesson plan item for this lesson")

    now = utcnow_iso()
    db.execute(
        text("""
            INSERT INTO class_lesson_progress
                (lesson_plan_item_id, completed, completed_at, completed_by_teacher_id, updated_at)
            VALUES (:item_id, :completed, :completed_at, :teacher_id, :now)
            ON CONFLICT (lesson_plan_item_id) DO UPDATE SET
                completed = excluded.completed,
                completed_at = excluded.completed_at,
                completed_by_teacher_id = excluded.completed_by_teacher_id,
                updated_at = excluded.updated_at
        """),
        {
            "item_id": item_id,
            "completed": completed,
            "completed_at": now if completed else None,
            "teacher_id": teacher_id,
            "now": now,
        },
    )
    return fetch_one(
        db, "SELECT * FROM class_lesson_progress WHERE lesson_plan_item_id = :id", {"id": item_id}
    )
