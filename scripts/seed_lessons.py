#!/usr/bin/env python3
"""
Lesson Seed Script

Seeds the course schedule: a lesson every Monday and Tuesday from
2025-07-01 to 2025-08-31, cycling through the topic catalogue.
Existing lessons are left alone unless --reset is given.

Usage: python scripts/seed_lessons.py [--reset]
"""
import sys
sys.path.insert(0, '.')

from sqlalchemy import text

from learnify.core.logging_config import setup_logging
from learnify.db.database import engine, get_db_session, fetch_one
from learnify.db.tables import init_db
from learnify.services.lesson_schedule import build_schedule
from learnify.services.lesson_service import create_lesson


def seed(reset: bool = False) -> int:
    """Insert the schedule; returns the number of lessons created."""
    with get_db_session() as db:
        if reset:
            db.execute(text("DELETE FROM class_lesson_progress"))
            db.execute(text("DELETE FROM lesson_plan_items"))
            db.execute(text("DELETE FROM lessons"))
        elif fetch_one(db, "SELECT COUNT(*) AS n FROM lessons")["n"]:
            return 0

        schedule = build_schedule()
        for lesson in schedule:
            create_lesson(db, lesson)
    return len(schedule)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    setup_logging()
    init_db(engine)
    created = seed(reset="--reset" in argv)
    if created:
        print(f"Seeded {created} lessons")
    else:
        print("Lessons already exist; use --reset to recreate them")
    return 0


if __name__ == "__main__":
    sys.exit(main())
