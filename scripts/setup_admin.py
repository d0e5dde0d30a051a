#!/usr/bin/env python3
"""
Admin Setup Script

Creates the admin (teacher) student, or promotes an existing one.
Usage: python scripts/setup_admin.py [STUDENT_ID] [FULL_NAME]
"""
import sys
sys.path.insert(0, '.')

from learnify.core.logging_config import setup_logging
from learnify.db.database import engine, get_db_session
from learnify.db.tables import init_db
from learnify.services.student_service import ensure_admin

DEFAULT_ADMIN_ID = "T14004"
DEFAULT_ADMIN_NAME = "Admin User"


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    student_id = argv[0] if argv else DEFAULT_ADMIN_ID
    full_name = argv[1] if len(argv) > 1 else DEFAULT_ADMIN_NAME

    setup_logging()
    init_db(engine)
    with get_db_session() as db:
        student, created = ensure_admin(db, student_id, full_name)

    action = "Created" if created else "Updated"
    print(f"{action} {student['student_id']} ({student['full_name']}); is_admin = {student['is_admin']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
